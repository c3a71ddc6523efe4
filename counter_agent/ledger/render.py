"""Block-digit rendering of the counter value for operator logs."""

DIGIT_HEIGHT = 6

ASCII_DIGITS: dict[str, tuple[str, ...]] = {
    "0": (
        "  ████  ",
        " ██  ██ ",
        "██    ██",
        "██    ██",
        " ██  ██ ",
        "  ████  ",
    ),
    "1": (
        "   ██   ",
        "  ███   ",
        "   ██   ",
        "   ██   ",
        "   ██   ",
        "  ████  ",
    ),
    "2": (
        " ██████ ",
        "██    ██",
        "     ██ ",
        "   ██   ",
        " ██     ",
        "████████",
    ),
    "3": (
        " ██████ ",
        "██    ██",
        "    ███ ",
        "    ███ ",
        "██    ██",
        " ██████ ",
    ),
    "4": (
        "██    ██",
        "██    ██",
        "████████",
        "     ██ ",
        "     ██ ",
        "     ██ ",
    ),
    "5": (
        "████████",
        "██      ",
        "███████ ",
        "      ██",
        "██    ██",
        " ██████ ",
    ),
    "6": (
        " ██████ ",
        "██      ",
        "███████ ",
        "██    ██",
        "██    ██",
        " ██████ ",
    ),
    "7": (
        "████████",
        "     ██ ",
        "    ██  ",
        "   ██   ",
        "  ██    ",
        " ██     ",
    ),
    "8": (
        " ██████ ",
        "██    ██",
        " ██████ ",
        "██    ██",
        "██    ██",
        " ██████ ",
    ),
    "9": (
        " ██████ ",
        "██    ██",
        "██    ██",
        " ███████",
        "      ██",
        " ██████ ",
    ),
}

DIGIT_SEPARATOR = "  "


def render_counter(value: int) -> str:
    """Render ``value`` as six lines of block digits.

    Characters without a glyph (such as a minus sign) are skipped.
    """
    glyphs = [ASCII_DIGITS[ch] for ch in str(value) if ch in ASCII_DIGITS]
    return "\n".join(
        DIGIT_SEPARATOR.join(glyph[row] for glyph in glyphs)
        for row in range(DIGIT_HEIGHT)
    )
