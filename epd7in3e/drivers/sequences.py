"""
7in3e Init & Refresh Sequences
==============================
Parameter bytes for the manufacturer's initialization stream and the
refresh cycle. Each sequence is a tuple of (command, data) pairs sent in
order, each pair in its own CS frame.

Values are specific to the 800x480 E6 panel; changing them alters the
drive voltages and can damage the film.
"""
from .commands import (
    CMD_BOOSTER_1,
    CMD_BOOSTER_2,
    CMD_BOOSTER_3,
    CMD_CMDH,
    CMD_PANEL_SETTING,
    CMD_PLL,
    CMD_POWER_OFF_SEQ,
    CMD_POWER_SAVING,
    CMD_POWER_SETTING,
    CMD_RESOLUTION,
    CMD_TCON,
    CMD_VCOM_DATA,
    CMD_VCOM_DC,
)

# =============================================================================
# Init
# =============================================================================

INIT_SEQUENCE = (
    (CMD_CMDH, (0x49, 0x55, 0x20, 0x08, 0x09, 0x18)),
    (CMD_POWER_SETTING, (0x3F,)),
    (CMD_PANEL_SETTING, (0x5F, 0x69)),
    (CMD_POWER_OFF_SEQ, (0x00, 0x54, 0x00, 0x44)),
    (CMD_BOOSTER_1, (0x40, 0x1F, 0x1F, 0x2C)),
    (CMD_BOOSTER_2, (0x6F, 0x1F, 0x17, 0x49)),
    (CMD_BOOSTER_3, (0x6F, 0x1F, 0x1F, 0x22)),
    (CMD_PLL, (0x03,)),
    (CMD_VCOM_DATA, (0x3F,)),
    (CMD_TCON, (0x02, 0x00)),
    (CMD_RESOLUTION, (0x03, 0x20, 0x01, 0xE0)),  # 0x0320 = 800, 0x01E0 = 480
    (CMD_VCOM_DC, (0x01,)),
    (CMD_POWER_SAVING, (0x2F,)),
)

# =============================================================================
# Refresh
# =============================================================================

# Re-sent between power-on and refresh
REFRESH_BOOSTER = (CMD_BOOSTER_2, (0x6F, 0x1F, 0x17, 0x49))

REFRESH_PARAM = 0x00          # DRF parameter
POWER_OFF_PARAM = 0x00        # POF parameter

# =============================================================================
# Sleep
# =============================================================================

DEEP_SLEEP_CHECK = 0xA5       # DSLP check code; any other value is ignored

# BUSY reads low while the controller is working
BUSY_LEVEL = False
