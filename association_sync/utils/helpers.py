"""General utility helper functions."""


def format_duration(seconds: float) -> str:
    """
    Format seconds to human-readable duration.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., '1h 30m 45s')
    """
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if hours:
        parts.append(f'{hours}h')
    if minutes:
        parts.append(f'{minutes}m')
    if secs:
        parts.append(f'{secs}s')

    return ' '.join(parts) or '0s'
