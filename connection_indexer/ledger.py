"""
Dedup Ledger - Profile URLs already seen during this session.
"""


class DedupLedger:
    """
    In-memory set of profile URLs, grows for the life of the session.

    Only saves work within a session. The remote upsert still has to treat a
    resubmitted profile URL as an update.
    """

    def __init__(self):
        self._seen: set[str] = set()

    def __contains__(self, profile_url: str) -> bool:
        return profile_url in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def admit(self, profile_url: str) -> bool:
        """Record a profile URL. Returns False if it was already seen."""
        if profile_url in self._seen:
            return False
        self._seen.add(profile_url)
        return True
