from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..config import CombatTuning
from ..core.rng import RNG
from ..skills.hooks import LethalProtection, Proc, TurnStartEffects
from ..skills.passives import PassiveKind, has_passive, passive_name, passive_value
from ..skills.pipeline import SkillPipeline
from ..skills.registry import SkillTrigger
from .combatant import CONTROL_STATUSES, NEGATIVE_STATUSES, Combatant, StatusEntry, StatusKind
from .log import BattleLog, EventType

logger = logging.getLogger(__name__)

MAX_BLEED_STACKS = 5
MAX_BURN_STACKS = 3
MAX_CHARGE_STACKS = 3

MASTERY_NAME = "五行圆满"


def percent_of(total: int, percent: float) -> int:
    """Floored ``percent`` of ``total``."""
    return int(total * percent // 100)


class StatusProcessor:
    """Apply, tick and expire statuses, and resolve lethal damage.

    Features:
    - Rolls status procs against immunity (mastery, earth control immunity).
    - Bleed stacks to 5 and lasts for the battle; burn stacks to 3 and explodes.
    - Turn-start tick: regeneration first, then bleed and burn damage, then
      duration countdowns.
    - Lethal damage consults once-per-round protection, then once-per-battle
      revive, before a death event is logged.
    """

    def __init__(self, rng: RNG, log: BattleLog, tuning: CombatTuning, pipeline: SkillPipeline) -> None:
        self.rng = rng
        self.log = log
        self.tuning = tuning
        self.pipeline = pipeline

    # --------------- Immunity ---------------

    def immune_to(self, target: Combatant, kind: StatusKind) -> bool:
        if target.has_mastery and kind in NEGATIVE_STATUSES:
            return True
        if (
            kind in CONTROL_STATUSES
            and has_passive(target, PassiveKind.EARTH_IMMUNE)
            and target.hp_ratio > self.tuning.combat.control_immunity_threshold
        ):
            return True
        return False

    # --------------- Application ---------------

    def apply_proc(self, source: Combatant, target: Combatant, proc: Proc) -> bool:
        """Roll ``proc`` and apply its status on success.

        Immune or dead targets are skipped without drawing.
        """
        if not target.alive or self.immune_to(target, proc.kind):
            return False
        if not self.rng.chance(proc.chance):
            return False
        return self.apply(source, target, proc.kind, proc.source_name)

    def apply(
        self,
        source: Optional[Combatant],
        target: Combatant,
        kind: StatusKind,
        source_name: Optional[str] = None,
    ) -> bool:
        """Apply ``kind`` to ``target`` unconditionally (immunity still holds)."""
        if not target.alive or self.immune_to(target, kind):
            return False
        if kind is StatusKind.BLEEDING:
            self._apply_bleed(source, target, source_name)
        elif kind is StatusKind.BURNING:
            self._apply_burn(source, target, source_name)
        elif kind is StatusKind.SLOWED:
            self._apply_slow(source, target, source_name)
        elif kind is StatusKind.FROZEN:
            self._apply_freeze(source, target, source_name)
        else:
            raise ValueError(f"Status {kind.value!r} is not applied through procs")
        return True

    def _applied(self, source: Optional[Combatant], target: Combatant, kind: StatusKind, entry: StatusEntry, name: Optional[str]) -> None:
        self.log.add(
            EventType.STATUS_APPLIED,
            actor_id=source.id if source else None,
            target_id=target.id,
            status_type=kind.value,
            stacks=entry.stacks,
            skill_name=name,
        )

    def _apply_bleed(self, source: Optional[Combatant], target: Combatant, name: Optional[str]) -> None:
        per_stack = passive_value(source, PassiveKind.METAL_BLEED, secondary=True) if source else 0
        per_stack = per_stack or 2
        entry = target.status(StatusKind.BLEEDING)
        if entry is None:
            entry = target.set_status(
                StatusKind.BLEEDING,
                StatusEntry(stacks=1, value=per_stack, source_id=source.id if source else None),
            )
        else:
            entry.stacks = min(MAX_BLEED_STACKS, entry.stacks + 1)
            entry.value = max(entry.value, per_stack)
        self._applied(source, target, StatusKind.BLEEDING, entry, name)

    def _apply_burn(self, source: Optional[Combatant], target: Combatant, name: Optional[str]) -> None:
        burn = self.tuning.burn
        if source is not None:
            per_stack = passive_value(source, PassiveKind.FIRE_BURN, secondary=True) or burn.per_stack_percent
            stacking = has_passive(source, PassiveKind.FIRE_STACK)
            explode = passive_value(source, PassiveKind.FIRE_EXPLODE) or burn.explode_percent
            ember = has_passive(source, PassiveKind.FIRE_EMBER)
        else:
            per_stack, stacking, explode, ember = burn.per_stack_percent, False, burn.explode_percent, False

        entry = target.status(StatusKind.BURNING)
        if entry is None:
            entry = target.set_status(
                StatusKind.BURNING,
                StatusEntry(stacks=1, turns_left=burn.turns, value=per_stack, source_id=source.id if source else None),
            )
        else:
            if stacking:
                entry.stacks = min(MAX_BURN_STACKS, entry.stacks + 1)
            entry.turns_left = burn.turns
            entry.value = max(entry.value, per_stack)
            entry.source_id = source.id if source else entry.source_id
        entry.params.update({"explode_percent": explode, "ember": ember})
        self._applied(source, target, StatusKind.BURNING, entry, name)

        if entry.stacks >= MAX_BURN_STACKS:
            self._explode(source, target, entry)

    def _explode(self, source: Optional[Combatant], target: Combatant, entry: StatusEntry) -> None:
        target.clear_status(StatusKind.BURNING)
        amount = max(1, percent_of(target.max_hp, entry.params.get("explode_percent", self.tuning.burn.explode_percent)))
        logger.debug("Burn on %s explodes for %d", target.id, amount)
        self.deal_damage(
            target,
            amount,
            source.id if source else None,
            EventType.BURN_EXPLODE,
            status_type=StatusKind.BURNING.value,
            stacks=entry.stacks,
        )
        if entry.params.get("ember") and target.alive and not self.immune_to(target, StatusKind.EMBERS):
            ember = target.set_status(
                StatusKind.EMBERS,
                StatusEntry(value=self.tuning.burn.ember_bonus, source_id=entry.source_id),
            )
            self._applied(source, target, StatusKind.EMBERS, ember, passive_name(PassiveKind.FIRE_EMBER))

    def _apply_slow(self, source: Optional[Combatant], target: Combatant, name: Optional[str]) -> None:
        slow = self.tuning.slow
        entry = target.set_status(
            StatusKind.SLOWED,
            StatusEntry(turns_left=slow.turns, value=slow.percent, source_id=source.id if source else None),
        )
        self._applied(source, target, StatusKind.SLOWED, entry, name)

    def _apply_freeze(self, source: Optional[Combatant], target: Combatant, name: Optional[str]) -> None:
        shatter = passive_value(source, PassiveKind.WATER_SHATTER) if source else 0
        entry = target.set_status(
            StatusKind.FROZEN,
            StatusEntry(turns_left=1, value=shatter, source_id=source.id if source else None),
        )
        self._applied(source, target, StatusKind.FROZEN, entry, name)

    # --------------- Regeneration setup ---------------

    def install_regeneration(self, combatant: Combatant, percent: float, doubles_when_low: bool) -> None:
        if percent <= 0:
            combatant.clear_status(StatusKind.REGENERATION)
            return
        combatant.set_status(
            StatusKind.REGENERATION,
            StatusEntry(value=percent, params={"doubles_when_low": doubles_when_low}),
        )

    # --------------- Turn-start tick ---------------

    def tick(self, combatant: Combatant) -> None:
        """Turn-start processing for ``combatant``.

        Heals come first so a regenerating combatant can outlast its bleed.
        Death is not resolved here; the caller re-checks afterwards.
        """
        if combatant.has_mastery:
            healed = combatant.heal(max(1, percent_of(combatant.max_hp, self.tuning.mastery.regen_percent)))
            if healed > 0:
                self.log.add(
                    EventType.STATUS_HEAL,
                    actor_id=combatant.id,
                    target_id=combatant.id,
                    value=healed,
                    skill_name=MASTERY_NAME,
                )

        regen = combatant.status(StatusKind.REGENERATION)
        if regen is not None:
            percent = regen.value
            if regen.params.get("doubles_when_low") and combatant.hp_ratio < self.tuning.combat.regen_low_hp_threshold:
                percent *= 2
            healed = combatant.heal(percent_of(combatant.max_hp, percent))
            if healed > 0:
                self.log.add(
                    EventType.STATUS_HEAL,
                    actor_id=combatant.id,
                    target_id=combatant.id,
                    value=healed,
                    status_type=StatusKind.REGENERATION.value,
                )

        effects: TurnStartEffects = self.pipeline.resolve(SkillTrigger.TURN_START, combatant)
        for name, percent in effects.heals:
            self.skill_heal(combatant, percent, name)

        bleed = combatant.status(StatusKind.BLEEDING)
        if bleed is not None and combatant.alive:
            self._tick_damage(combatant, bleed, StatusKind.BLEEDING)

        burn = combatant.status(StatusKind.BURNING)
        if burn is not None:
            if combatant.alive:
                self._tick_damage(combatant, burn, StatusKind.BURNING)
            self._count_down(combatant, StatusKind.BURNING)

        self._count_down(combatant, StatusKind.SLOWED)

    def _tick_damage(self, combatant: Combatant, entry: StatusEntry, kind: StatusKind) -> None:
        amount = max(1, percent_of(combatant.max_hp, entry.value * entry.stacks))
        lost = combatant.damage(amount)
        self.log.add(
            EventType.STATUS_DAMAGE,
            actor_id=entry.source_id,
            target_id=combatant.id,
            value=lost,
            status_type=kind.value,
            stacks=entry.stacks,
        )

    @staticmethod
    def _count_down(combatant: Combatant, kind: StatusKind) -> None:
        entry = combatant.status(kind)
        if entry is None or entry.turns_left is None:
            return
        entry.turns_left -= 1
        if entry.turns_left <= 0:
            combatant.clear_status(kind)

    # --------------- Freeze ---------------

    def thaw(self, combatant: Combatant) -> None:
        """Consume a freeze: log the skipped turn and apply any shatter damage."""
        entry = combatant.clear_status(StatusKind.FROZEN)
        self.log.add(EventType.FROZEN_SKIP, actor_id=combatant.id, target_id=combatant.id)
        if entry is not None and entry.value > 0:
            amount = max(1, percent_of(combatant.max_hp, entry.value))
            self.deal_damage(
                combatant,
                amount,
                entry.source_id,
                EventType.FREEZE_SHATTER,
                status_type=StatusKind.FROZEN.value,
                skill_name=passive_name(PassiveKind.WATER_SHATTER),
            )

    # --------------- Charge ---------------

    def add_charge(self, combatant: Combatant, per_stack_percent: float) -> None:
        entry = combatant.status(StatusKind.CHARGE)
        if entry is None:
            entry = combatant.set_status(StatusKind.CHARGE, StatusEntry(stacks=0))
        entry.stacks = min(MAX_CHARGE_STACKS, entry.stacks + 1)
        entry.value = max(entry.value, per_stack_percent)
        self._applied(combatant, combatant, StatusKind.CHARGE, entry, None)

    def consume_charge(self, combatant: Combatant) -> float:
        """Clear the charge stacks and return the damage bonus percent they grant."""
        entry = combatant.clear_status(StatusKind.CHARGE)
        if entry is None:
            return 0
        percent = entry.value * entry.stacks
        if entry.stacks >= MAX_CHARGE_STACKS:
            percent += passive_value(combatant, PassiveKind.EARTH_REVENGE)
        return percent

    # --------------- Damage, heal, lethal ---------------

    def deal_damage(
        self,
        target: Combatant,
        amount: int,
        source_id: Optional[str],
        event_type: EventType = EventType.DAMAGE,
        **fields,
    ) -> int:
        """Apply damage, log it, then resolve lethal damage. Returns hp lost."""
        if not target.alive:
            return 0
        lost = target.damage(amount)
        self.log.add(event_type, actor_id=source_id, target_id=target.id, value=lost, **fields)
        if not target.alive:
            self.resolve_lethal(target, killer_id=source_id)
        return lost

    def heal(self, target: Combatant, amount: int, actor_id: Optional[str] = None, **fields) -> int:
        healed = target.heal(amount)
        self.log.add(
            EventType.HEAL,
            actor_id=actor_id or target.id,
            target_id=target.id,
            value=healed,
            **fields,
        )
        return healed

    def skill_heal(self, target: Combatant, percent: float, skill_name: Optional[str]) -> int:
        """Percent-of-max-hp skill heal (at least 1), logged as a status heal."""
        healed = target.heal(max(1, percent_of(target.max_hp, percent)))
        if healed > 0:
            self.log.add(
                EventType.STATUS_HEAL,
                actor_id=target.id,
                target_id=target.id,
                value=healed,
                skill_name=skill_name,
            )
        return healed

    def resolve_lethal(self, target: Combatant, killer_id: Optional[str] = None) -> bool:
        """Handle hp reaching zero. Returns True if the target is still standing.

        Protection (1 HP) fires at most once per round; otherwise a
        once-per-battle revive is consulted; otherwise the target dies.
        """
        if target.alive:
            return True
        protection: LethalProtection = self.pipeline.resolve(SkillTrigger.ON_LOW_HP, target)

        if not target.has_status(StatusKind.SURVIVED_LETHAL):
            fired = None
            if protection.guaranteed:
                fired = protection.guaranteed_by[0]
            elif protection.survive_chance > 0 and self.rng.chance(protection.survive_chance):
                fired = protection.chance_by[0]
            if fired is not None:
                target.set_hp(1)
                target.set_status(StatusKind.SURVIVED_LETHAL, StatusEntry())
                self.log.add(EventType.SURVIVE_LETHAL, actor_id=target.id, target_id=target.id, value=1, skill_name=fired)
                return True

        if protection.revive_percent > 0 and not target.has_status(StatusKind.REVIVED):
            hp = target.set_hp(max(1, percent_of(target.max_hp, protection.revive_percent)))
            target.set_status(StatusKind.REVIVED, StatusEntry())
            self.log.add(
                EventType.REVIVE,
                actor_id=target.id,
                target_id=target.id,
                value=hp,
                skill_name=protection.revive_by[0] if protection.revive_by else None,
            )
            return True

        self.log.add(EventType.DEATH, actor_id=killer_id, target_id=target.id)
        return False

    @staticmethod
    def clear_round_flags(combatants: Iterable[Combatant]) -> None:
        for c in combatants:
            c.clear_status(StatusKind.SURVIVED_LETHAL)


__all__ = [
    "StatusProcessor",
    "MAX_BLEED_STACKS",
    "MAX_BURN_STACKS",
    "MAX_CHARGE_STACKS",
    "percent_of",
]
