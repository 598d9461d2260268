"""ntspgen: pack DDS mip chains into NTSP stream packages and NTSI sidecars."""

__version__ = "0.1.0"
