# per-status base score; VERIFIED is scaled by the stored confidence
STATUS_SCORES = {
    'VERIFIED':               100.0,
    'PENDING':                50.0,
    'PENDING_API_VALIDATION': 60.0,
    'PENDING_MANUAL_REVIEW':  40.0,
    'MISSING':                0.0,
    'REJECTED':               0.0,
    'EXPIRED':                0.0,
}

# keyed by number of prior rejections, 3 and above share the last entry
HISTORY_MULTIPLIERS = {
    0: 1.0,
    1: 0.9,
    2: 0.75,
}
HISTORY_MULTIPLIER_FLOOR = 0.5

PILLAR_WEIGHTS = {
    'CHILD_LABOR_AGE_VERIFICATION': 1.8,
    'FACTORY_REGISTRATION_SAFETY':  1.5,
    'ENVIRONMENTAL':                1.3,
    'WAGES_OVERTIME':               1.2,
    'ESI_PF_COVERAGE':              1.2,
}
DEFAULT_PILLAR_WEIGHT = 1.0

GREEN_THRESHOLD = 85.0
AMBER_THRESHOLD = 60.0
MAX_SCORE = 100.0

# layout comparison
BLOCK_MATCH_RATIO = 0.5
POSITION_SIMILARITY_MIN = 0.7
STRUCTURE_WEIGHT = 0.4
LAYOUT_WEIGHT = 0.6

RAW_TEXT_EXCERPT_CHARS = 2000
AI_TEXT_LIMIT_CHARS = 30000

