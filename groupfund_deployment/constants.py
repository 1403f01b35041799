from pathlib import Path

import groupfund_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(groupfund_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL_NETWORK_NAMES = ["local", "development"]

#
# Units
#

DECIMALS = 18
FIXED_POINT_SCALE = 10**DECIMALS  # base units per whole token unit

#
# Contracts
#

GROUP_FUND = "GroupFund"
CONTROL_TOKEN = "ControlToken"
ORACLIZE_HANDLER = "OraclizeHandler"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#
# Deadman burning
#

# accounts holding less than one whole ControlToken are not worth burning
DEADMAN_THRESHOLD = 1 * FIXED_POINT_SCALE
BELOW_THRESHOLD = "below-threshold"
