"""
Game constants - default balance values in one place.
NO UI DEPENDENCIES.

These are the defaults used by GameConfig when no config file is given.
"""

# =============================================================================
# STARTING RESOURCES
# =============================================================================
STARTING_CORN = 0
STARTING_EGGS = 0
STARTING_COINS = 50

# =============================================================================
# PRODUCTION (timings in seconds)
# =============================================================================
CORN_PER_HARVEST = 1
HARVEST_COOLDOWN = 2.0        # field regrow time

FEED_COST = 1                 # corn per feeding
YIELD_PER_FEED = 1            # eggs laid per feeding
LAY_DELAY = 0.5               # chicken busy time before the egg appears
PRODUCER_COOLDOWN = 1.0

SELL_COOLDOWN = 0.5           # store counter cooldown

# =============================================================================
# ECONOMY
# =============================================================================
BASE_SELL_PRICE = 10          # coins per egg before the price rate
HELPER_BASE_COST = 100
HELPER_COST_INCREMENT = 50    # added per helper already hired

# =============================================================================
# ACTORS
# =============================================================================
AGENT_SPEED = 3.0             # units per second
AGENT_WAIT_TIME = 0.5         # pause at the end of each cycle
AGENT_ACTION_TIME = 0.3       # pause after each harvest/feed/sell
AGENT_COLLECT_TIME = 0.3      # local wait at the chicken before collecting
AGENT_START_DELAY_MIN = 0.5
AGENT_START_DELAY_MAX = 2.0

PLAYER_SPEED = 5.0
PICK_RADIUS = 1.0             # how close an input must land to a node

# =============================================================================
# LAYOUT (world units)
# =============================================================================
FIELD_POSITION = (-4.0, 0.0)
PRODUCER_POSITION = (0.0, 0.0)
MARKET_POSITION = (4.0, 0.0)
AGENT_SPAWN_POSITION = (0.0, -3.0)
PLAYER_START_POSITION = (0.0, -2.0)

# =============================================================================
# DAY CLOCK
# =============================================================================
DAY_LENGTH = 120.0            # seconds for a full day/night cycle
DAY_START_TIME = 0.25         # 0.0 midnight, 0.5 noon
MIN_DAY_LENGTH = 10.0

# =============================================================================
# UPGRADES (base_cost, cost_growth, max_level, effect_multiplier, flat_bonus)
# =============================================================================
UPGRADE_DEFAULTS = {
    "corn_yield": (100, 1.5, 5, 1.2, 0),
    "egg_yield": (200, 1.5, 5, 1.2, 0),
    "sell_price": (300, 1.5, 5, 1.2, 0),
    "speed": (500, 1.5, 5, 1.2, 0),
    "capacity": (750, 1.5, 3, 1.0, 1),
}

# =============================================================================
# PRESENTATION HINTS (RGB for resource-gained popups)
# =============================================================================
CORN_COLOR = (255, 230, 77)
EGG_COLOR = (255, 250, 230)
COIN_COLOR = (255, 217, 51)

# =============================================================================
# TICK
# =============================================================================
DEFAULT_DT = 0.1              # seconds per simulated tick
SLOW_TICK_SECONDS = 0.05      # wall-clock time above which a tick is logged
