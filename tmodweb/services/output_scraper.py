"""Player roster scraping from screen hardcopy dumps."""

PLAYER_LIST_PREFIXES = ("Current players", "Players:")
NO_PLAYERS_PLACEHOLDER = "None"
PLAYER_SEPARATOR = ", "


def parse_players_line(line):
    """Split the text after the first colon of a roster line into names."""
    if ":" not in line:
        return []
    raw = line.split(":", 1)[1].strip()
    if not raw or raw == NO_PLAYERS_PLACEHOLDER:
        return []
    return raw.split(PLAYER_SEPARATOR)


def extract_players(lines):
    """Return the roster from the bottommost roster line, or ``[]``.

    Walks the buffer from newest output to oldest so an answer to the most
    recent ``players`` query wins over older ones still on screen.
    """
    for line in reversed(list(lines)):
        if line.startswith(PLAYER_LIST_PREFIXES):
            return parse_players_line(line)
    return []


def read_snapshot_lines(path):
    """Read a hardcopy dump as lines; missing or unreadable files give ``[]``."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    # hardcopy pads every row to the terminal width.
    return [line.rstrip() for line in text.splitlines()]
