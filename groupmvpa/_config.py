# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Configure groupmvpa"""
import logging
import multiprocessing
import os
import sys
from typing import Any, Dict, Union

from ._utils import IS_OSX, ScreenHandler


CONFIG: Dict[str, Any] = {
    'n_workers': multiprocessing.cpu_count(),
    'nice': 0,
    'tqdm': False,  # disable=CONFIG['tqdm']
    'log': False,
}

# Python 3.8 switched default to spawn, which makes pytest hang  (https://docs.python.org/3/whatsnew/3.8.html#multiprocessing)
if sys.version_info.minor >= 8 and IS_OSX:
    method = 'fork'
else:
    method = None
mpc = multiprocessing.get_context(method)


def configure(
        n_workers: Union[bool, int] = None,
        nice: int = None,
        tqdm: bool = None,
        log: bool = None,
):
    """Set basic configuration parameters for the current session

    Parameters
    ----------
    n_workers
        Number of worker processes to use for permutation tests. ``False`` to
        disable multiprocessing. ``True`` (default) to use as many processes
        as cores are available. Negative numbers to use all but n available
        CPUs.
    nice : int [-20, 19]
        Scheduling priority for multiprocessing (larger number yields more to
        other processes; negative numbers require root privileges).
    tqdm
        Enable or disable :mod:`tqdm` progress bars.
    log
        Enable logging to the screen (for debugging groupmvpa).
    """
    # don't change values before raising an error
    logger = logging.getLogger('groupmvpa')
    new: Dict[str, Any] = {}
    if n_workers is not None:
        if n_workers is True:
            new['n_workers'] = multiprocessing.cpu_count()
        elif n_workers is False:
            new['n_workers'] = 0
        elif isinstance(n_workers, int):
            cpu_count = multiprocessing.cpu_count()
            if n_workers < 0:
                if cpu_count + n_workers < 1:
                    raise ValueError(f"{n_workers=}, but only {cpu_count} CPUs are available")
                new['n_workers'] = cpu_count + n_workers
            else:
                if n_workers > cpu_count:
                    logger.warning(f"Configure {n_workers=} with {cpu_count=}")
                new['n_workers'] = n_workers
        else:
            raise TypeError(f"{n_workers=}")
    if nice is not None:
        nice = int(nice)
        if not -20 <= nice < 20:
            raise ValueError(f"{nice=}; needs to be in range [-20, 19]")
        elif nice < 0 and not os.getuid() == 0:
            raise ValueError(f"{nice=}; values < 0 require root privileges")
        new['nice'] = nice
    if tqdm is not None:
        new['tqdm'] = not tqdm

    # logging
    if log is True and not CONFIG['log']:
        logger.setLevel(logging.DEBUG)
        handler = ScreenHandler()
        handler.setLevel(logging.DEBUG)
        logger.addHandler(handler)
        logger.debug("Enabling logger")
        new['log'] = handler
    elif log is False and CONFIG['log']:
        handler = CONFIG['log']
        logger.removeHandler(handler)
        new['log'] = False

    CONFIG.update(new)
