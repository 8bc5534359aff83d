# hrms_lite/models/__init__.py

from .enums import *
from .employee import *
# add all your models here for easy import elsewhere
