"""
constants.py: Centralized configuration for the simulation, economy and network.
"""

# -------- World Config --------
SCREEN_WIDTH = 360
SCREEN_HEIGHT = 640
PLAYER_X = 96                   # Fixed player X position
PLAYER_RADIUS = 12
RESPAWN_Y = SCREEN_HEIGHT // 2
MAX_FRAME_DT = 0.033            # seconds, clamp for long frames
RENDER_FPS = 60

# -------- Physics Config (Pixels / Second / Second) --------
GRAVITY_ACCEL = 520.0           # Vertical acceleration (pixels/s^2)
TAP_IMPULSE = 220.0             # Velocity change against gravity (pixels/s)
BOUNCE_DAMPING = 0.6
SHIELD_GRACE_MS = 600           # hazard immunity after a shield absorbs a hit

# -------- Daily Defaults (used when the provider is unreachable) --------
DEFAULT_SEED = "classic"
DEFAULT_MODE_NAME = "Odd Gravity"
DEFAULT_FLIP_MS = 3000
DEFAULT_OBSTACLE_SPEED = 3      # multiplied by 60 to get pixels/s
DEFAULT_FREEZE_MS = 550
SPEED_UNIT = 60.0

# -------- Difficulty Config --------
LEVEL_SIZE = 12                 # gap obstacles per level
LEVEL_STEP = 0.07               # difficulty added per completed level
WITHIN_LEVEL_SPAN = 0.15        # max ramp inside a level
GRACE_SEC = 3.0                 # no time ramp for the first seconds of a run
TIME_RAMP_SEC = 45.0
DIFFICULTY_MAX = 1.5

GAP_START = 280
GAP_END = 120
GAP_MIN = 120
GAP_MAX = 340
SPEED_MUL_START = 0.60
SPEED_MUL_END = 1.12
SPEED_MUL_MAX = 1.30
FLIP_MUL_START = 1.35
FLIP_MUL_END = 0.90
FLIP_MUL_MIN = 0.60
COL_WIDTH_START = 26
COL_WIDTH_END = 50
COL_WIDTH_MIN = 22
COL_WIDTH_MAX = 56
FUDGE_START = 22.0
FUDGE_END = 3.0
FUDGE_FLOOR = 3.0               # forgiveness never drops below this
FREEZE_MUL_START = 1.25
FREEZE_MUL_END = 0.90

# -------- Obstacle Config --------
OBSTACLE_WINDOW = 10            # keep at least this many obstacles queued
INITIAL_OBSTACLES = 9
SPAWN_OFFSET_X = 6
SPAWN_DIST_EASY = 240
SPAWN_DIST_HARD = 200
FIRST_EASY_WALLS = 6
SECOND_EASY_WALLS = 10
FIRST_EASY_BONUS = 90
SECOND_EASY_BONUS = 50
GAP_MARGIN = 80
MOVING_MIN_D = 0.2
MOVING_CHANCE_SCALE = 0.8
MOVING_CHANCE_MAX = 0.6
SINE_DRIFT_AMP = 40.0           # pixels
SINE_DRIFT_FREQ = 1.6           # radians/s
ZIGZAG_SPEED = 45.0             # pixels/s

# -------- Scoring Config --------
NEAR_MISS_MARGIN = 14.0         # clearance (pixels) that counts as a near miss
NEAR_MISS_POINTS = 1
COMBO_BONUS_EVERY = 5
COMBO_BONUS_POINTS = 2

# -------- Creature Config --------
CREATURE_SPAWN_EASY_MS = 4200
CREATURE_SPAWN_HARD_MS = 1800
CREATURE_SPAWN_X = SCREEN_WIDTH + 60
LIGHTNING_STRIKE_MS = 200
DIVE_RETURN_MS = 500

# -------- Collectible Config --------
COLLECTIBLE_SPAWN_CHANCE = 0.4
CLUSTER_SIZE_MIN = 1
CLUSTER_SIZE_MAX = 5
CLUSTER_SPREAD = 30
COLLECT_RADIUS = 30
MAGNET_RADIUS = 150
MAGNET_SPEED = 400
NEAR_MISS_COIN_BONUS = 2
ITEM_CULL_X = -50

# -------- Combo Config --------
COMBO_WINDOW_MS = 1500
MAX_MULTIPLIER = 10
COMBO_MESSAGE_MS = 1500

# -------- Powerup Config --------
POWERUP_BASE_CHANCE = 0.08
POWERUP_SCORE_BONUS_MAX = 0.1
POWERUP_MIN_INTERVAL_MS = 8000
POWERUP_SIZE = 28
POWERUP_SPEED_MULT = 0.7
POWERUP_COLLECT_RADIUS = 40
SHRINK_SCALE = 0.5
SLOWMO_SCALE = 0.4

# -------- Progression Config --------
BASE_XP = 100                   # XP needed for level 2
XP_MULTIPLIER = 1.5
MAX_LEVEL = 50
XP_PER_SCORE = 10
XP_PER_COIN = 2
XP_PER_OBSTACLE = 5
XP_PER_POWERUP = 15
XP_BONUS_DAILY = 50

# -------- Banners --------
BANNER_MS = 2200
BEST_BANNER_MS = 3000

# -------- Network & Server Config --------
API_BASE_URL = "http://127.0.0.1:8080"
API_TIMEOUT = 5.0               # seconds
SERVER_HOST = "0.0.0.0"
SERVER_PORT = 8080
DB_FILE = "oddgravity_server.db"
LOCAL_DB_FILE = "oddgravity_local.db"
MAX_SCORE = 1_000_000
LEADERBOARD_DEFAULT_LIMIT = 20
LEADERBOARD_MAX_LIMIT = 100
