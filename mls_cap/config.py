"""
Project-wide configuration constants.
"""

from pathlib import Path

# Season table
SEASON_RULES_PATH = Path(__file__).resolve().parent / "data" / "season_rules.yaml"

# Command surface defaults
DEFAULT_TEAM = "Austin FC"
DEFAULT_CANDIDATE_AGE = 25

# Outgoing-sale GAM conversion (USD)
LEAGUE_FEE_RATE = 0.05
AGENT_FEE_RATE = 0.10
GAM_CONVERSION_TIERS = (
    (1_000_000, 0.50),
    (3_000_000, 0.40),
    (None, 0.25),
)
MAX_GAM_PER_SALE = 3_000_000
MIN_FEE_FOR_CONVERSION = 100_000
HOMEGROWN_BONUS_RATE = 0.15
YOUNG_PLAYER_BONUS_RATE = 0.10
YOUNG_PLAYER_AGE_THRESHOLD = 23

# Roster construction Model B
MODEL_B_EXTRA_GAM = 2_000_000

# Unconfirmed CBA reading: GAM-paid transfer fees never amortize into the charge.
GAM_FEE_COUNTS_TOWARD_CHARGE = False

# Bundled roster snapshot for the default club
DEFAULT_ROSTER_PATH = Path(__file__).resolve().parent / "data" / "austin_fc_2026.csv"
