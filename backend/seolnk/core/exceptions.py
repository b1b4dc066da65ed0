class InvalidArgument(ValueError):
    """Raised when a rollup is called with an argument it cannot work with"""
