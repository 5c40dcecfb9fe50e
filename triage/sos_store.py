"""
In-memory SOS request queue and news feed.

One SOSStore lives for the whole process: the app creates it at startup,
rescuers can reset it, and it is closed at exit. Nothing is written to
disk, so a restart starts from an empty queue.
"""
import json
import random
import sqlite3
import string
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pandas as pd

from triage.config import SETTINGS
from triage.logger import get_logger
from triage.priority_engine import PriorityBreakdown, PriorityResult, SeverityScores

logger = get_logger(__name__)

UTC = timezone.utc

PENDING, ACCEPTED, RESOLVED = "pending", "accepted", "resolved"

ETA_MIN_SECONDS = 120
ETA_MAX_SECONDS = 719

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS requests (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    sos_id TEXT UNIQUE NOT NULL,
    name TEXT, age INTEGER, phone TEXT, description TEXT,
    category TEXT NOT NULL,
    severity_json TEXT NOT NULL, priority_json TEXT NOT NULL,
    priority_score REAL NOT NULL,
    reason_explanation TEXT,
    lat REAL, lng REAL, location_accuracy REAL,
    created_at TEXT NOT NULL,
    status TEXT NOT NULL,
    rescuer_id TEXT, rescue_session_id TEXT, eta_seconds INTEGER,
    consent_timestamp TEXT
);
CREATE INDEX IF NOT EXISTS idx_requests_cat_score ON requests(category, priority_score);

CREATE TABLE IF NOT EXISTS news (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    title TEXT, snippet TEXT, timestamp TEXT, source TEXT
);
"""

SAMPLE_NEWS = [
    (
        "Emergency Response Team Deployed to Downtown Area",
        "Emergency services have been dispatched to respond to a situation in the "
        "downtown area. Residents are advised to avoid the vicinity until further notice.",
        15,
        "Local Emergency Services",
    ),
    (
        "Weather Alert: Severe Storm Approaching",
        "A severe storm is expected to hit the region within the next 2 hours. Seek "
        "shelter and avoid unnecessary travel. Emergency shelters are open at community centers.",
        60,
        "Weather Service",
    ),
    (
        "Power Restoration in Northwest Sector",
        "Power has been restored to 85% of affected households in the northwest sector "
        "after yesterday's outage. Crews are working to restore remaining areas.",
        3 * 60,
        "Utility Company",
    ),
    (
        "Road Closures Due to Emergency Operations",
        "Several roads in the central district are closed due to ongoing emergency "
        "operations. Please use alternate routes.",
        4 * 60,
        "Traffic Authority",
    ),
]


def now_iso() -> str:
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _random_suffix(k: int = 9) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=k))


@dataclass
class SOSRequest:
    sos_id: str
    name: str
    age: int
    phone: str
    description: str
    category: str
    severity: SeverityScores
    priority: PriorityResult
    reason_explanation: str
    lat: Optional[float]
    lng: Optional[float]
    location_accuracy: float
    created_at: str
    status: str = PENDING
    rescuer_id: Optional[str] = None
    rescue_session_id: Optional[str] = None
    eta_seconds: Optional[int] = None
    consent_timestamp: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "SOSRequest":
        priority = json.loads(row["priority_json"])
        priority["breakdown"] = PriorityBreakdown(**priority["breakdown"])
        return cls(
            sos_id=row["sos_id"],
            name=row["name"],
            age=row["age"],
            phone=row["phone"],
            description=row["description"],
            category=row["category"],
            severity=SeverityScores(**json.loads(row["severity_json"])),
            priority=PriorityResult(**priority),
            reason_explanation=row["reason_explanation"],
            lat=row["lat"],
            lng=row["lng"],
            location_accuracy=row["location_accuracy"],
            created_at=row["created_at"],
            status=row["status"],
            rescuer_id=row["rescuer_id"],
            rescue_session_id=row["rescue_session_id"],
            eta_seconds=row["eta_seconds"],
            consent_timestamp=row["consent_timestamp"],
        )


@dataclass
class AcceptResult:
    ok: bool
    rescue_session_id: Optional[str] = None
    eta_seconds: Optional[int] = None


@dataclass
class NewsItem:
    id: str
    title: str
    snippet: str
    timestamp: str
    source: str


class SOSStore:
    """Process-scoped record store for SOS requests and news items."""

    def __init__(self, news_max_items: int = SETTINGS.news_max_items):
        self.news_max_items = news_max_items
        self._lock = threading.Lock()
        self._counter = 0
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)

    def close(self):
        with self._lock:
            self._conn.close()

    # ----------------- SOS requests -----------------
    def generate_sos_id(self) -> str:
        with self._lock:
            return self._next_id()

    def _next_id(self) -> str:
        self._counter += 1
        date = datetime.now(tz=UTC).strftime("%Y%m%d")
        return f"sos_{date}_{self._counter:04d}"

    def add_request(
        self,
        name: str,
        age: int,
        phone: str,
        description: str,
        category: str,
        severity: SeverityScores,
        priority: PriorityResult,
        reason_explanation: str,
        location_accuracy: float,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        consent_timestamp: Optional[str] = None,
    ) -> SOSRequest:
        with self._lock:
            request = SOSRequest(
                sos_id=self._next_id(),
                name=name,
                age=age,
                phone=phone,
                description=description,
                category=category,
                severity=severity,
                priority=priority,
                reason_explanation=reason_explanation,
                lat=lat,
                lng=lng,
                location_accuracy=location_accuracy,
                created_at=now_iso(),
                consent_timestamp=consent_timestamp,
            )
            self._conn.execute(
                """
                INSERT INTO requests (
                    sos_id, name, age, phone, description, category,
                    severity_json, priority_json, priority_score, reason_explanation,
                    lat, lng, location_accuracy, created_at, status, consent_timestamp
                ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)
                """,
                (
                    request.sos_id, name, age, phone, description, category,
                    json.dumps(severity.as_dict()), json.dumps(priority.as_dict()),
                    priority.score, reason_explanation,
                    lat, lng, location_accuracy, request.created_at, PENDING,
                    consent_timestamp,
                ),
            )
            self._conn.commit()
        logger.info(
            "SOS %s queued: category=%s priority=%s (%.3f)",
            request.sos_id, category, priority.tag, priority.score,
        )
        return request

    def _select(self, where: str = "", params=(), order: str = "") -> List[SOSRequest]:
        sql = "SELECT * FROM requests"
        if where:
            sql += f" WHERE {where}"
        if order:
            sql += f" ORDER BY {order}"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [SOSRequest.from_row(r) for r in rows]

    def get_request(self, sos_id: str) -> Optional[SOSRequest]:
        found = self._select("sos_id=?", (sos_id,))
        return found[0] if found else None

    def get_requests(self, category: Optional[str] = None) -> List[SOSRequest]:
        """Highest priority first; equal scores show the newest first."""
        order = "priority_score DESC, created_at DESC, seq DESC"
        if category:
            return self._select("category=?", (category,), order)
        return self._select(order=order)

    def get_pending_requests(self, category: Optional[str] = None) -> List[SOSRequest]:
        return [r for r in self.get_requests(category) if r.status == PENDING]

    def get_resolved_requests(self) -> List[SOSRequest]:
        return self._select("status=?", (RESOLVED,), "seq DESC")

    def count_by_status(self, category: Optional[str] = None) -> Dict[str, int]:
        """Per-status counts plus a total that includes in-progress requests."""
        sql = "SELECT status, COUNT(*) FROM requests"
        params = ()
        if category:
            sql += " WHERE category=?"
            params = (category,)
        with self._lock:
            rows = self._conn.execute(sql + " GROUP BY status", params).fetchall()
        counts = {PENDING: 0, ACCEPTED: 0, RESOLVED: 0}
        counts.update({status: n for status, n in rows})
        counts["total"] = sum(n for _, n in rows)
        return counts

    def accept_request(self, sos_id: str, rescuer_id: str) -> AcceptResult:
        """Claim a pending request. The first rescuer to accept wins."""
        session_id = f"rs_{_epoch_ms()}"
        eta = random.randint(ETA_MIN_SECONDS, ETA_MAX_SECONDS)
        with self._lock:
            cur = self._conn.execute(
                """
                UPDATE requests
                SET status=?, rescuer_id=?, rescue_session_id=?, eta_seconds=?
                WHERE sos_id=? AND status=?
                """,
                (ACCEPTED, rescuer_id, session_id, eta, sos_id, PENDING),
            )
            self._conn.commit()
        if cur.rowcount == 0:
            logger.warning("Accept rejected for %s: missing or not pending", sos_id)
            return AcceptResult(ok=False)
        logger.info("SOS %s accepted by %s, ETA %ss", sos_id, rescuer_id, eta)
        return AcceptResult(ok=True, rescue_session_id=session_id, eta_seconds=eta)

    def resolve_request(self, sos_id: str) -> bool:
        with self._lock:
            cur = self._conn.execute(
                "UPDATE requests SET status=? WHERE sos_id=?", (RESOLVED, sos_id)
            )
            self._conn.commit()
        if cur.rowcount == 0:
            logger.warning("Resolve failed: %s not found", sos_id)
            return False
        logger.info("SOS %s resolved", sos_id)
        return True

    def reset(self):
        """Drop every request and restart SOS numbering."""
        with self._lock:
            self._conn.execute("DELETE FROM requests")
            self._conn.commit()
            self._counter = 0
        logger.info("SOS store reset")

    def clear_all(self):
        """Drop every request but keep numbering where it is."""
        with self._lock:
            self._conn.execute("DELETE FROM requests")
            self._conn.commit()
        logger.info("SOS requests cleared")

    @staticmethod
    def search(requests: List[SOSRequest], query: str) -> List[SOSRequest]:
        if not query:
            return list(requests)
        q = query.lower()
        return [
            r for r in requests
            if q in r.name.lower() or q in r.description.lower() or query in r.phone
        ]

    @staticmethod
    def to_frame(requests: List[SOSRequest]) -> pd.DataFrame:
        columns = ["sos_id", "name", "age", "category", "score", "tag", "status", "created_at"]
        return pd.DataFrame(
            [
                {
                    "sos_id": r.sos_id,
                    "name": r.name,
                    "age": r.age,
                    "category": r.category,
                    "score": r.priority.score,
                    "tag": r.priority.tag,
                    "status": r.status,
                    "created_at": r.created_at,
                }
                for r in requests
            ],
            columns=columns,
        )

    # ----------------- News feed -----------------
    def add_news_item(self, title: str, snippet: str, timestamp: str, source: str) -> NewsItem:
        item = NewsItem(
            id=f"news_{_epoch_ms()}_{_random_suffix()}",
            title=title,
            snippet=snippet,
            timestamp=timestamp,
            source=source,
        )
        with self._lock:
            self._conn.execute(
                "INSERT INTO news (id, title, snippet, timestamp, source) VALUES (?,?,?,?,?)",
                (item.id, title, snippet, timestamp, source),
            )
            # Keep only the newest items.
            self._conn.execute(
                "DELETE FROM news WHERE seq NOT IN "
                "(SELECT seq FROM news ORDER BY seq DESC LIMIT ?)",
                (self.news_max_items,),
            )
            self._conn.commit()
        return item

    def get_news_items(self, since: Optional[str] = None) -> List[NewsItem]:
        """Newest first; with `since`, only items strictly after that time."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, title, snippet, timestamp, source FROM news ORDER BY seq DESC"
            ).fetchall()
        items = [NewsItem(**dict(r)) for r in rows]
        if since:
            cutoff = _parse_iso(since)
            items = [i for i in items if _parse_iso(i.timestamp) > cutoff]
        return items

    def initialize_sample_news(self):
        with self._lock:
            seeded = self._conn.execute("SELECT COUNT(*) FROM news").fetchone()[0]
        if seeded:
            return
        now = datetime.now(tz=UTC)
        for title, snippet, minutes_ago, source in SAMPLE_NEWS:
            ts = (now - timedelta(minutes=minutes_ago)).isoformat(timespec="milliseconds")
            self.add_news_item(title, snippet, ts.replace("+00:00", "Z"), source)
        logger.info("Seeded %d sample news items", len(SAMPLE_NEWS))
