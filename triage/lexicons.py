# Keyword tables consumed by the priority engine.
# Pure data: swapping in a real classifier only needs new tables or a new
# engine behind the same function signatures.

LEXICON_VERSION = "1.0"

# ---------------- CATEGORIES ----------------
# Declaration order matters: on equal hit counts the earlier category wins.
CATEGORY_KEYWORDS = {
    "Medical": [
        "injured", "injury", "bleeding", "unconscious", "heart", "breathing",
        "pain", "sick", "fever", "medicine", "doctor", "hospital", "ambulance",
        "diabetic", "pregnant", "stroke", "seizure", "broken", "fracture",
    ],
    "Food": [
        "hungry", "food", "water", "thirsty", "starving", "dehydrated", "meal",
        "supplies", "ration",
    ],
    "Shelter": [
        "homeless", "shelter", "roof", "house", "building", "tent", "cover",
        "cold", "exposed", "rain",
    ],
    "Trapped": [
        "trapped", "stuck", "debris", "collapsed", "rubble", "cannot move",
        "pinned", "buried", "locked",
    ],
    "Others": [],
}

CATEGORIES = tuple(CATEGORY_KEYWORDS)
DEFAULT_CATEGORY = "Others"

# ---------------- SEVERITY ----------------
SEVERITY_KEYWORDS = {
    "high": [
        "dying", "dead", "unconscious", "critical", "severe", "massive",
        "heavy bleeding", "cannot breathe", "heart attack", "stroke",
    ],
    "medium": ["injured", "bleeding", "pain", "broken", "fracture", "sick", "fever"],
    "low": ["minor", "small", "slight", "little"],
}

# ---------------- URGENCY ----------------
URGENCY_KEYWORDS = [
    "help", "now", "urgent", "immediately", "emergency", "hurry", "fast",
    "quickly", "asap", "dying", "please",
]

# Any of these pins time criticality to 1.0.
ABSOLUTE_URGENCY_KEYWORDS = ["dying", "cannot breathe", "unconscious"]

# ---------------- VULNERABILITY ----------------
VULNERABILITY_KEYWORDS = {
    "child": ["child", "children", "baby", "infant", "toddler", "kid", "minor", "young"],
    "elderly": [
        "elderly", "old", "senior", "aged", "grandma", "grandpa", "grandmother",
        "grandfather",
    ],
    "pregnant": ["pregnant", "expecting", "pregnancy", "labor"],
    "disabled": ["disabled", "disability", "wheelchair", "blind", "deaf", "paralyzed"],
}

# ---------------- HAZARDS ----------------
COMPLICATION_KEYWORDS = [
    "fire", "gas", "leak", "electrocution", "electric", "shock", "collapse",
    "explosion", "smoke", "fumes", "chemical",
]

ENVIRONMENTAL_KEYWORDS = [
    "flood", "flooding", "storm", "landslide", "earthquake", "tsunami",
    "cyclone", "tornado", "hurricane", "water rising",
]


def contains_keyword(text, keywords):
    """True if any keyword occurs in text (case-insensitive substring)."""
    lower = text.lower()
    return any(kw.lower() in lower for kw in keywords)


def count_keywords(text, keywords):
    """Number of distinct keywords present in text; repeats count once."""
    lower = text.lower()
    return sum(1 for kw in keywords if kw.lower() in lower)
