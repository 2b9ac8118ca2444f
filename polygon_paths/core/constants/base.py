ONE_GWEI = 1_000_000_000
MAX_UINT256 = 2**256 - 1

# Gas limit buffers applied on top of eth_estimateGas.
GAS_BUFFER_MULTIPLIER = 1.2
# Approvals get more headroom: an underestimated approval blocks every
# funds-moving call queued behind it.
APPROVAL_GAS_BUFFER_MULTIPLIER = 1.5

# Fees above this are logged, never rejected; real congestion can exceed it.
MAX_FEE_SANITY_CEILING_GWEI = 500

# Fixed headroom on top of gas * maxFeePerGas for the delegate balance guard.
GAS_FUNDS_SAFETY_MARGIN_WEI = 2 * 10**15  # 0.002 native token

# Undelegate slippage: maxSharesToBurn = shares + shares / 1000 + 1
UNDELEGATE_SLIPPAGE_DIVISOR = 1000

# Timeout constants (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0
APPROVAL_CONFIRMATION_TIMEOUT = 120
RESTAKE_CONFIRMATION_TIMEOUT = 120
CONFIRMATION_POLL_INTERVAL = 1.0
