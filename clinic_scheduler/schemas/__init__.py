# Schemas package (re-export feature modules for stable imports)
from .appointments.appointment import *
from .slots.slot import *
from .queue.queue import *
from .exams.exam import *
from .common.common import *
