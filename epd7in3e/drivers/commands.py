"""
7in3e Command Constants
=======================
Command bytes for the 7.3" E6 (7-color) panel controller, as used by
the manufacturer's init and refresh sequences.

Organized by functional category for easier navigation.
"""

# =============================================================================
# Panel Configuration
# =============================================================================

CMD_CMDH = 0xAA               # Command header / unlock for analog settings
CMD_PANEL_SETTING = 0x00      # PSR - resolution select, scan direction
CMD_POWER_SETTING = 0x01      # PWR - internal voltage generation
CMD_POWER_OFF_SEQ = 0x03      # POFS - power off sequence timing
CMD_BOOSTER_1 = 0x05          # BTST1 - booster soft start phase 1
CMD_BOOSTER_2 = 0x06          # BTST2 - booster soft start phase 2 (also pre-refresh)
CMD_BOOSTER_3 = 0x08          # BTST3 - booster soft start phase 3
CMD_PLL = 0x30                # PLL - frame rate
CMD_VCOM_DATA = 0x50          # CDI - VCOM and data interval
CMD_TCON = 0x60               # TCON - gate/source non-overlap
CMD_RESOLUTION = 0x61         # TRES - 800 x 480
CMD_VCOM_DC = 0x84            # T_VDCS
CMD_POWER_SAVING = 0xE3       # PWS

# =============================================================================
# Power Control
# =============================================================================

CMD_POWER_ON = 0x04           # PON - BUSY low until the charge pump is up
CMD_POWER_OFF = 0x02          # POF - parameter 0x00
CMD_DEEP_SLEEP = 0x07         # DSLP - needs check code 0xA5, exit via RST only

# =============================================================================
# Display Update
# =============================================================================

CMD_DATA_START = 0x10         # DTM - start of frame data (4 bpp, 2 px per byte)
CMD_REFRESH = 0x12            # DRF - run the waveform, BUSY low until done
