"""FLUXNET conventions and unit conversions."""

# FLUXNET encodes missing values as -9999 in every numeric column.
MISSING_VALUE: float = -9999.0

# Half-hourly timestamp columns, e.g. 201501010030.
TIMESTAMP_START = "TIMESTAMP_START"
TIMESTAMP_END = "TIMESTAMP_END"
TIMESTAMP_FORMAT = "%Y%m%d%H%M"

# Daytime-partitioned GPP (VUT reference) and its standard error.
GPP_COLUMN = "GPP_DT_VUT_REF"
GPP_UNC_COLUMN = "GPP_DT_VUT_SE"

# umol CO2 m-2 s-1 -> g C m-2 d-1: seconds per day, umol -> mol, 12 g C per mol.
GPP_UMOL_TO_G_PER_DAY: float = 86400 / 1e6 * 12

# rsofun forcing carries rain and snow as mm s-1; P is compared in mm d-1.
SECONDS_PER_DAY: float = 86400.0
FORCING_PRECIP_COLUMNS = ("rain", "snow")
