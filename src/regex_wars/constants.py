
GRID_COLS = 20
GRID_ROWS = 30

# Empty slots are rendered into scan lines as this sentinel so a match can never span a gap.
EMPTY_SLOT = " "

# ============================================================================
# TIMING (milliseconds)
# ============================================================================
INITIAL_FALL_INTERVAL_MS = 1000
FALL_INTERVAL_DECREMENT_MS = 50   # shaved off the fall interval per level gained
MIN_FALL_INTERVAL_MS = 100
SPAWN_INTERVAL_MS = 2000

# ============================================================================
# SCORING & PROGRESSION
# ============================================================================
SCORE_PER_MATCH = 10     # per matched cell
SCORE_PER_LINE = 100
LINES_PER_LEVEL = 10
MAX_LEVEL = 30
EFFICIENCY_BONUS_FACTOR = 10

# ============================================================================
# SPAWNING
# ============================================================================
MIN_SPAWN_PER_WAVE = 1
MAX_SPAWN_PER_WAVE = 3

# ============================================================================
# CHARACTER TIERS
# ============================================================================
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
VOWELS = "aeiouAEIOU"
COMMON_CONSONANTS = "rstnlRSTNL"

# Minimum level -> characters available from that level on.
CHARACTER_TIERS = {
    1: "aeiourstnl",
    6: LOWERCASE,
    11: LOWERCASE + DIGITS,
    16: LOWERCASE + UPPERCASE + DIGITS,
    21: LOWERCASE + UPPERCASE + DIGITS + SYMBOLS,
}
FALLBACK_CHARACTERS = "abc"
WEIGHT_POOL_SCALE = 10   # weight -> ceil(weight * scale) entries in the draw pool

# ============================================================================
# FRONTEND
# ============================================================================
CELL_SIZE = 22
HUD_HEIGHT = 48
COMMAND_LINE_HEIGHT = 40
