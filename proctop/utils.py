_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def convert_to_MB(value):
    return value / 1024 / 1024


def format_bytes(value):
    if value is None:
        return "?"
    size = float(max(0, value))
    for unit in _BYTE_UNITS:
        if size < 1024 or unit == _BYTE_UNITS[-1]:
            if unit == "B":
                return "{} B".format(int(size))
            return "{:.1f} {}".format(size, unit)
        size /= 1024


def format_rate(bytes_per_sec):
    if bytes_per_sec is None:
        return "--"
    return format_bytes(bytes_per_sec) + "/s"


def shorten_text(text, max_len=30):
    """Truncate a string with ellipsis if too long."""
    if text is None:
        return "?"
    text = str(text).strip()
    if not text:
        return "?"
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."
