"""Centralized constants for the slotting engine.

This module contains the static lookup tables used by destination
classification and slot assignment: the Amazon destination lists, the keyword
tables for each zone category, and the physical layout constants of the
warehouse. All tables are immutable and built once at import time.
"""

# ============================================================================
# DESTINATION LISTS
# ============================================================================

#: Amazon fulfillment centers stored in the main zones (A, B/C aisles)
AMAZON_MAIN_DESTINATIONS = (
    "XLX7", "MIT2", "GYR2", "GEU3", "IUSW", "GEU2", "GYR3", "IND9", "IUTE",
    "CLT2", "FWA4", "SCK8", "ABE8", "SBD1", "MQJ1", "LGB8", "PSC2", "BNA6",
    "FTW1", "AVP1", "IUSP", "LAN2", "MEM1", "RMN3", "VGT2", "RFD2", "ABQ2",
    "IUSJ", "IAH3", "LAX9", "IUSR", "SCK4", "ONT8", "TCY1", "SLC2", "RDU4",
    "SMF3", "MDW2", "LAS1", "IUSQ", "ORF2", "FOE1", "TEB9", "GEU5", "DEN8",
    "POC1", "RDU2", "IUTI", "POC3",
)

#: Amazon fulfillment centers with low volume, stored in the buffer zones (D/E/G00-G04)
AMAZON_BUFFER_DESTINATIONS = (
    "LGB6", "SWF2", "OKC2", "HLI2", "IUSF", "SMF6", "TCY2", "SBD2", "POC2",
    "AMA1", "IUST", "FAT2", "IND5", "PHX7", "QXY8", "MKC4", "SJC7", "PBI3",
    "PPO4", "ICT2", "MEM6", "STL3", "MCC1", "ILG1", "RYY2", "LAS6", "BOS7",
    "LGB4", "DFW6", "RIC7", "STL4", "SAT1", "FTW5", "MCE1", "OAK3", "LIT2",
    "LFT1", "XON1", "SAT4", "SLC3", "MDW6", "BFI3", "RFD4", "MQJ2",
)


# ============================================================================
# CLASSIFIER KEYWORDS (matched as lower-case substrings)
# ============================================================================

EXPRESS_KEYWORDS = ("fedex", "ups")

#: Retail partner with its own dedicated zone
RETAIL_PARTNER_KEYWORDS = ("希音", "shein")

PRIVATE_KEYWORDS = ("住宅", "私人", "residential")

PLATFORM_KEYWORDS = (
    "wayfair", "fbx", "tiktok", "万邑通", "谷仓", "4px", "客户自提", "商业地址",
)

#: Marker for Amazon destinations that are not in either list
AMAZON_MARKER = "amazon-"

#: Generic fulfillment-center code: three letters followed by one digit
GENERIC_CODE_PATTERN = r"^[a-z]{3}\d$"

CURRENCY_MARKERS = ("$", "¥", "￥", "€", "£")

SUSPENSE_KEYWORDS = ("暂扣", "中转", "仓储", "transit", "staging")

#: Prefixes stripped when comparing destination codes ("Amazon-MDW2" == "MDW2")
DESTINATION_PREFIX_PATTERN = r"^(amazon|amz|fba)[\s\-:]*"


# ============================================================================
# ALLOCATION DEFAULTS
# ============================================================================

#: Batch total (pallets per destination) above which main-zone Amazon freight
#: is restricted to the primary main subtype (aisle A)
MAIN_ZONE_THRESHOLD_PALLETS = 20

#: Aisles that private/platform freight is forced into in automatic mode
FORCED_ZONE_PREFIXES = ("V", "H", "F", "R")

#: Numbered sub-range of aisle G that is also part of the forced pool
FORCED_RANGE_PREFIX = "G"
FORCED_RANGE_START = 5
FORCED_RANGE_END = 15


# ============================================================================
# SPREADSHEET LABELS
# ============================================================================

#: Header written into exported unload plans for the assigned locations
LOCATION_COLUMN_HEADER = "库位安排"

#: Remark written into the location column of the trailing row of an export
LOCATION_REMARK = "库位按派"

#: Filler used in the remark row and for "no destination" cells
PLACEHOLDER_DASH = "——"
