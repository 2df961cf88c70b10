# utils/formatting.py


def format_time(secs: int) -> str:
    """Render whole seconds as ``m:ss``."""
    secs = int(secs)
    minutes, seconds = divmod(secs, 60)
    return f"{minutes}:{seconds:02d}"


def format_lead_in(secs: int) -> str:
    # Lead-in shows bare seconds and never goes negative.
    return str(max(0, int(secs)))


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
