# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
from .basic import (
    tqdm, trange,
    intervals,
    log_level, set_log_level, ScreenHandler,
)
from .system import IS_OSX, IS_WINDOWS, restore_main_spec
