"""
Raffle-wide immutable parameters.

These values define the public rules of every raffle instance.
Changing them changes payouts or rarity odds and MUST be publicly announced.
"""

# Lamports use 9 decimals
TOKEN_DECIMALS = 9

# Entrance fee per slot (raw units)
DEFAULT_ENTRANCE_FEE = 1 * (10**TOKEN_DECIMALS)  # 1 SOL

# Minimum time a raffle stays open before settlement (seconds)
DEFAULT_MIN_DURATION = 24 * 60 * 60

# Payout split, in percent of total collected
PERCENT_BASE = 100
PRIZE_POOL_PERCENTAGE = 80
OPERATOR_FEE_PERCENTAGE = PERCENT_BASE - PRIZE_POOL_PERCENTAGE

# Rarity roll: a value in [0, RARITY_RANGE) compared against cumulative thresholds
RARITY_RANGE = 100
COMMON_THRESHOLD = 70  # [0, 70)
RARE_THRESHOLD = 95  # [70, 95), everything above is legendary

# Solana target: 400ms per slot
SLOT_TIME_S = 0.4

# Public keys are 32 raw bytes, base58 encoded
ACCOUNT_KEY_LENGTH = 32

# Retained in memory per raffle; older entries are dropped, not archived
HISTORY_LIMIT = 32
EVENT_LOG_LIMIT = 1024
