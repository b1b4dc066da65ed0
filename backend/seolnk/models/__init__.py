from .link import Link, RotatorDestination
from .bio import BioPage, BioLink
from .event import LinkEvent, BioEvent

__all__ = ["Link", "RotatorDestination", "BioPage", "BioLink", "LinkEvent", "BioEvent"]
