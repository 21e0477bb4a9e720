# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
import pytest

pytest.register_assert_rewrite('groupmvpa.testing._testing')

from ._testing import ConfigContext, assert_stats_equal
