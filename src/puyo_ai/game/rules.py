from __future__ import annotations

from dataclasses import dataclass

from .chain import DEFAULT_CLEAR_THRESHOLD, StepResult


@dataclass
class ScoringRules:
    clear_threshold: int = DEFAULT_CLEAR_THRESHOLD
    points_per_cell: int = 10
    # Indexed by chain number - 1, extended by the last step for longer chains.
    chain_power: tuple[int, ...] = (0, 8, 16, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448, 480, 512)
    # Indexed by group size - threshold, capped at the last entry.
    group_bonus: tuple[int, ...] = (0, 2, 3, 4, 5, 6, 7, 10)
    # Indexed by number of distinct colours cleared in one step - 1.
    color_bonus: tuple[int, ...] = (0, 3, 6, 12, 24)

    def chain_power_for(self, chain_number: int) -> int:
        if chain_number <= 0:
            return 0
        if chain_number <= len(self.chain_power):
            return self.chain_power[chain_number - 1]
        step = self.chain_power[-1] - self.chain_power[-2]
        return self.chain_power[-1] + (chain_number - len(self.chain_power)) * step

    def score_for_step(self, chain_number: int, step: StepResult) -> int:
        if not step:
            return 0
        bonus = self.chain_power_for(chain_number)
        for group in step.groups:
            idx = min(group.size - self.clear_threshold, len(self.group_bonus) - 1)
            bonus += self.group_bonus[max(0, idx)]
        bonus += self.color_bonus[min(step.colors, len(self.color_bonus)) - 1]
        return self.points_per_cell * step.cleared * max(1, bonus)
