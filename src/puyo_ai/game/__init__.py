"""Game module for Puyo AI.

Exports the simulation engine and supporting classes:
- Board: Cell matrix with hidden margin rows and column gravity
- ActivePiece / Orientation / Move: The falling pair and its placement rules
- ChainResult / StepResult: Flood-fill clearing and chain bookkeeping
- Tsumo / ColorBag / TsumoQueue: Upcoming colour pairs
- ScoringRules: Chain power and bonus tables for the running score
- PuyoGame: Session state and the command surface drivers call
"""

from .errors import ContractViolation
from .grid import Board, EMPTY
from .pieces import ActivePiece, Move, Orientation, is_position_valid, landing_row
from .chain import ChainResult, Group, StepResult, find_connected_group, resolve_step, resolve_to_fixpoint
from .tsumo import ColorBag, Tsumo, TsumoQueue
from .rules import ScoringRules
from .core import Action, GameConfig, LockResult, PuyoGame, intents_for_move

__all__ = [
    "ContractViolation",
    "Board",
    "EMPTY",
    "ActivePiece",
    "Move",
    "Orientation",
    "is_position_valid",
    "landing_row",
    "ChainResult",
    "Group",
    "StepResult",
    "find_connected_group",
    "resolve_step",
    "resolve_to_fixpoint",
    "ColorBag",
    "Tsumo",
    "TsumoQueue",
    "ScoringRules",
    "Action",
    "GameConfig",
    "LockResult",
    "PuyoGame",
    "intents_for_move",
]
