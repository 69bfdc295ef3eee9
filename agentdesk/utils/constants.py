"""Shared constants and defaults."""

PAPER = "paper"
LIVE = "live"
VALID_MODES = [PAPER, LIVE]

VALID_SIDES = ["YES", "NO"]

# Strategy kinds drive the auditor's tuning branch
STRATEGY_KINDS = ["generic", "bond_ladder", "contrarian", "copy_trader", "whale_mirror"]

# Trade.status
FILLED = "filled"
FAILED = "failed"

# TradeLog.event
SAFETY_BLOCK = "safety_block"
LIVE_REQUEST = "live_request"
LIVE_RESPONSE = "live_response"
LIVE_ERROR = "live_error"
PAPER_EXEC = "paper_exec"
LIVE_EXEC = "live_exec"
MODE_CHANGE = "mode_change"
KILL_SWITCH = "kill_switch"

NO_TRADABLE_IDENTIFIER = "No tradable identifier"

# Safeguard window for the order rate limit
RATE_LIMIT_WINDOW_SECONDS = 60

# Trade-log listing
DEFAULT_LOG_LIMIT = 100
MAX_LOG_LIMIT = 500

# Auditor bounds
AUDIT_DRAWDOWN_TRIGGER = 0.15
AUDIT_DEFAULT_BASE = 100.0
DIVERGENCE_STEP = 2.0
DIVERGENCE_CAP = 50.0
CERTAINTY_STEP = 0.01
CERTAINTY_CAP = 0.99
LIQUIDITY_STEP = 0.05
LIQUIDITY_CAP = 0.9
SIZE_DAMPING = 0.9
SIZE_FLOOR = 0.5

# Starting capital when a strategy has neither capital_allocation nor paper_capital
DEFAULT_STARTING_CAPITAL = 1000.0
