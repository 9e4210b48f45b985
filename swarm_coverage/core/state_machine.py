"""
Coverage phase state machine using the 'transitions' library.
"""
from enum import Enum
from transitions import Machine


class CoveragePhase(Enum):
    """Coverage phases of a single drone"""
    IDLE = "IDLE"                  # No area coverage requested
    CELL_PENDING = "CELL_PENDING"  # Request seen, cell not computed yet
    COVERING = "COVERING"          # Flying the pattern
    FINISHED = "FINISHED"          # Reached the final waypoint


class CoverageStateMachine:
    """
    Manages phase transitions for one drone's coverage controller.
    The controller *is* the model: triggers become methods on it.
    """

    def __init__(self, model):
        self.model = model

        self.machine = Machine(
            model=model,
            states=CoveragePhase,
            initial=CoveragePhase.IDLE,
            auto_transitions=False,
            send_event=True,
            after_state_change='_on_state_change'
        )

        self.machine.add_transition('search_requested', CoveragePhase.IDLE, CoveragePhase.CELL_PENDING)
        self.machine.add_transition('cell_ready', CoveragePhase.CELL_PENDING, CoveragePhase.COVERING)
        self.machine.add_transition(
            'coverage_complete',
            CoveragePhase.COVERING,
            CoveragePhase.FINISHED,
            after='_log_coverage_summary'
        )
        # Changing algorithm mid-mission recomputes the cell
        self.machine.add_transition(
            'switch_coverage',
            [CoveragePhase.CELL_PENDING, CoveragePhase.COVERING, CoveragePhase.FINISHED],
            CoveragePhase.CELL_PENDING
        )
        self.machine.add_transition('reset_search', '*', CoveragePhase.IDLE)
