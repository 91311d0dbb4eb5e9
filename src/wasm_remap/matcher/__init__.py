from .core import (
    DataRegionIndex as DataRegionIndex,
)
from .core import (
    Match as Match,
)
from .core import (
    MatchOptions as MatchOptions,
)
from .scoring import find_matches as find_matches
from .scoring import instructions_match as instructions_match
from .scoring import locals_match as locals_match
from .scoring import match_weight as match_weight
from .scoring import passes_gates as passes_gates
from .scoring import rank_matches as rank_matches
from .scoring import signature_matches as signature_matches
