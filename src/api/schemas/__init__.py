"""API schemas package."""

from .common import *
from .errors import *
from .limits import *
from .maintenance import *
