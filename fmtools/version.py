__version__ = "0.1"
__release__ = "0.1.0"
