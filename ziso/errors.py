# ==================================================
# ziso/errors.py
# ==================================================


class ZisoError(Exception):
    """Base class for every failure raised by the codec."""


class InputUnavailable(ZisoError, OSError):
    pass


class OutputUnavailable(ZisoError, OSError):
    pass


class BlockEncodingFailure(ZisoError):
    pass


class IndexOverflowError(BlockEncodingFailure):
    """An output offset no longer fits a 31‑bit index slot."""


class ConfigurationInvalid(ZisoError, ValueError):
    pass


class InvalidContainer(ZisoError, ValueError):
    pass
