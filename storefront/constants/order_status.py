CREATED = "created"
SUCCESS = "success"
FAILED = "failed"

ALLOWED_TRANSITIONS = {
    CREATED: [SUCCESS, FAILED],
    SUCCESS: [],
    FAILED: [],
}


def sources_for(target: str) -> list[str]:
    """Statuses an order may be in to move to ``target``."""
    return [
        status for status, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    ]
