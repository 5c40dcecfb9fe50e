"""SOS triage and dispatch: priority engine, request store, rescuer auth, rumour checks."""
