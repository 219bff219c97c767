from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..config import BattleConfig, CombatTuning
from ..core.rng import RNG
from ..elements import Element, Relation
from ..errors import EngineStateError
from ..skills import legacy
from ..skills.hooks import AfterAttackEffects, AfterDefendEffects, AoeStrike, AttackModifiers, DefendModifiers
from ..skills.legacy import LegacySkill, LegacyTrigger
from ..skills.pipeline import SkillPipeline
from ..skills.registry import SkillRegistry, SkillTrigger, resolve_registry
from .combatant import Combatant, StatusKind
from .damage import DamageCalculator, HitModifiers, assemble_damage
from .log import BattleEvent, BattleLog, EventType
from .snapshot import CombatantLike, load_combatants
from .status import StatusProcessor, percent_of
from .turn_order import TurnOrderResolver

logger = logging.getLogger(__name__)

# Hard bound on rounds; reaching it ends the battle as a draw.
MAX_ROUNDS = 50

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "max_hp",
        "attack",
        "defense",
        "speed",
        "attack_element",
        "defense_element",
        "element_levels",
        "attribute_skills",
        "legacy_skills",
        "relic_elements",
        "has_mastery",
    }
)
STAT_FIELDS = ("max_hp", "attack", "defense")


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ROUND_IN_PROGRESS = "round_in_progress"
    OVER = "over"


@dataclass(frozen=True)
class RoundResult:
    round_number: int
    events: List[BattleEvent]
    is_over: bool


@dataclass(frozen=True)
class BattleResult:
    winner_id: Optional[str]
    events: List[BattleEvent]
    surviving_combatants: List[Combatant]
    rounds: int

    @property
    def is_draw(self) -> bool:
        return self.winner_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner_id": self.winner_id,
            "rounds": self.rounds,
            "events": [e.to_dict() for e in self.events],
            "surviving_combatants": [c.to_dict() for c in self.surviving_combatants],
        }


class BattleEngine:
    """Resolve one encounter round by round.

    The engine owns private copies of its combatants; callers read results
    back through ``combatants`` or the returned BattleResult. All randomness
    comes from the injected RNG, so a fixed seed replays identically.

    Usage:
        engine = BattleEngine([hero, slime], rng=RNG(7))
        result = engine.run()
        result.winner_id
    """

    def __init__(
        self,
        combatants: Iterable[CombatantLike],
        config: Optional[BattleConfig] = None,
        rng: Union[RNG, int, None] = None,
        tuning: Optional[CombatTuning] = None,
        registry: Optional[SkillRegistry] = None,
    ) -> None:
        self._combatants: List[Combatant] = load_combatants(combatants)
        ids = [c.id for c in self._combatants]
        if len(set(ids)) != len(ids):
            raise EngineStateError(f"Duplicate combatant ids: {ids}")

        self.config = config or BattleConfig()
        self.rng = rng if isinstance(rng, RNG) else RNG(rng)
        self.tuning = tuning or CombatTuning.default()
        self.registry = resolve_registry(registry)
        self.pipeline = SkillPipeline(self.registry, self.tuning)
        self.log = BattleLog()
        self.status = StatusProcessor(self.rng, self.log, self.tuning, self.pipeline)
        self.calculator = DamageCalculator(self.tuning.mastery)
        self.turn_order = TurnOrderResolver()

        self._state = EngineState.UNINITIALIZED
        self._round = 0
        self._winner_id: Optional[str] = None
        self._player_target: Optional[str] = None
        self._base_stats: Dict[str, Tuple[int, int, int]] = {}

    # --------------- Accessors ---------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def round_number(self) -> int:
        return self._round

    @property
    def is_over(self) -> bool:
        return self._state is EngineState.OVER

    @property
    def winner_id(self) -> Optional[str]:
        return self._winner_id

    @property
    def combatants(self) -> List[Combatant]:
        return list(self._combatants)

    @property
    def events(self) -> List[BattleEvent]:
        return self.log.events()

    @property
    def player(self) -> Optional[Combatant]:
        return next((c for c in self._combatants if c.is_player), None)

    def get_combatant(self, combatant_id: str) -> Optional[Combatant]:
        return next((c for c in self._combatants if c.id == combatant_id), None)

    def opponents_of(self, combatant: Combatant) -> List[Combatant]:
        return [c for c in self._combatants if c.is_player != combatant.is_player and c.alive]

    # --------------- Lifecycle ---------------

    def initialize(self) -> List[BattleEvent]:
        """Compile skills, apply init-phase bonuses once and run battle-start skills.

        Later calls return an empty list.
        """
        if self._state is not EngineState.UNINITIALIZED:
            return []
        mark = len(self.log)
        logger.info("Battle start: %s", [c.id for c in self._combatants])
        self.log.add(EventType.BATTLE_START, value=len(self._combatants))

        for c in self._combatants:
            self._base_stats[c.id] = (c.max_hp, c.attack, c.defense)
            self._prepare(c, fresh=True)
        for c in self._combatants:
            self._battle_start_skills(c)

        self._state = EngineState.INITIALIZED
        return self.log.since(mark)

    def run_single_round(self) -> RoundResult:
        """Advance exactly one round (initializing first if needed)."""
        if self._state is EngineState.OVER:
            return RoundResult(self._round, [], True)
        mark = len(self.log)
        self.initialize()

        if self._decided():
            self._finish()
            return RoundResult(self._round, self.log.since(mark), True)

        self._state = EngineState.ROUND_IN_PROGRESS
        self._round += 1
        # Lethal protection resets for everyone at round start, not per actor tick.
        self.status.clear_round_flags(self._combatants)
        self.log.add(EventType.ROUND_START, value=self._round)

        for actor in self.turn_order.order(self._combatants):
            if self._decided():
                break
            self._take_turn(actor)

        self.log.add(EventType.ROUND_END, value=self._round)
        if self._decided() or self._round >= MAX_ROUNDS:
            self._finish()
        return RoundResult(self._round, self.log.since(mark), self.is_over)

    def run(self) -> BattleResult:
        """Run rounds until one side is eliminated or the round cap is hit."""
        self.initialize()
        while not self.is_over:
            self.run_single_round()
        return BattleResult(
            winner_id=self._winner_id,
            events=self.log.events(),
            surviving_combatants=[c for c in self._combatants if c.alive],
            rounds=self._round,
        )

    # --------------- Caller hooks ---------------

    def set_player_target(self, target_id: Optional[str]) -> None:
        """Force the player's next targets; None restores random targeting."""
        if target_id is not None and self.get_combatant(target_id) is None:
            raise EngineStateError(f"Unknown target id: {target_id!r}")
        self._player_target = target_id

    def update_combatant(self, data: Mapping[str, Any], combatant_id: Optional[str] = None) -> Combatant:
        """Re-sync a combatant's stats mid-battle without touching hp or statuses.

        Stat fields are base values; init-phase bonuses are re-applied on top.
        Defaults to the player when no id is given.
        """
        changes = dict(data)
        combatant_id = combatant_id or changes.pop("id", None)
        changes.pop("id", None)
        target = self.get_combatant(combatant_id) if combatant_id else self.player
        if target is None:
            raise EngineStateError(f"No combatant to update: {combatant_id!r}")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise EngineStateError(f"Fields cannot be updated: {sorted(unknown)}")

        if "legacy_skills" in changes:
            changes["legacy_skills"] = [
                s if isinstance(s, LegacySkill) else LegacySkill.from_dict(s) for s in changes["legacy_skills"]
            ]
        stats = {k: changes.pop(k) for k in STAT_FIELDS if k in changes}

        if self._state is EngineState.UNINITIALIZED:
            target.update(**changes, **stats)
            return target

        base_max, base_atk, base_def = self._base_stats[target.id]
        self._base_stats[target.id] = (
            max(1, int(stats.get("max_hp", base_max))),
            max(0, int(stats.get("attack", base_atk))),
            max(0, int(stats.get("defense", base_def))),
        )
        target.update(**changes)
        self._prepare(target, fresh=False)
        logger.info("Updated combatant %s: %s", target.id, sorted(set(changes) | set(stats)))
        return target

    # --------------- Setup ---------------

    def _prepare(self, c: Combatant, fresh: bool) -> None:
        self.pipeline.compile(c)
        mods = self.pipeline.init_modifiers(c)
        base_max, base_atk, base_def = self._base_stats[c.id]
        bonus_atk, bonus_def = legacy.passive_bonuses(c.legacy_skills)

        c.attack = max(0, int(base_atk * (100 + mods.attack_percent) // 100) + bonus_atk)
        c.defense = max(0, int(base_def * (100 + mods.defense_percent) // 100) + bonus_def)
        c.set_max_hp(base_max + mods.max_hp_flat)
        if fresh and mods.max_hp_flat > 0:
            c.heal(mods.max_hp_flat)
        self.status.install_regeneration(c, mods.regen_percent, mods.regen_doubles_when_low)
        logger.debug("Prepared %r with init modifiers %s", c, mods)

    def _battle_start_skills(self, c: Combatant) -> None:
        for skill in legacy.skills_for(c.legacy_skills, LegacyTrigger.BATTLE_START):
            if not c.alive:
                return
            self.log.add(EventType.SKILL_TRIGGERED, actor_id=c.id, skill_name=skill.name)
            if skill.heal > 0:
                self.status.heal(c, skill.heal, skill_name=skill.name)
            if skill.damage > 0:
                for enemy in self.opponents_of(c):
                    self.status.deal_damage(enemy, skill.damage, c.id, skill_name=skill.name)

    # --------------- Turn flow ---------------

    def _take_turn(self, actor: Combatant) -> None:
        if not actor.alive:
            return
        if actor.frozen:
            self.status.thaw(actor)
            return

        actor.attack_debuff = 0
        self.status.tick(actor)
        if not actor.alive and not self.status.resolve_lethal(actor):
            return

        self_damage = legacy.passive_self_damage(actor.legacy_skills)
        if self_damage is not None:
            amount, name = self_damage
            self.log.add(EventType.SKILL_TRIGGERED, actor_id=actor.id, target_id=actor.id, skill_name=name)
            self.status.deal_damage(actor, amount, actor.id, skill_name=name)
            if not actor.alive:
                return

        target = self._select_target(actor)
        if target is None:
            return
        strike = self.pipeline.roll_aoe(actor, self.rng)
        self.log.add(EventType.TURN_START, actor_id=actor.id, target_id=None if strike else target.id)
        if strike is not None:
            self._aoe(actor, strike)
        else:
            self._attack(actor, target)

    def _select_target(self, actor: Combatant) -> Optional[Combatant]:
        opponents = self.opponents_of(actor)
        if not opponents:
            return None
        if actor.is_player and self._player_target is not None:
            chosen = self.get_combatant(self._player_target)
            if chosen is not None and chosen in opponents:
                return chosen
            logger.debug("Player target %s is no longer valid; clearing override", self._player_target)
            self._player_target = None
        return self.rng.choice(opponents)

    def _attack(self, attacker: Combatant, defender: Combatant) -> None:
        guard = legacy.roll_on_defend(defender.legacy_skills, self.rng)
        for name in guard.triggered:
            self.log.add(EventType.SKILL_TRIGGERED, actor_id=defender.id, target_id=attacker.id, skill_name=name)
        if guard.dodged:
            self.log.add(EventType.MISS, actor_id=attacker.id, target_id=defender.id)
            self._after_defend(defender, attacker, 0, dodged=True)
            return
        if guard.attack_debuff:
            attacker.attack_debuff += guard.attack_debuff
        if guard.freeze_attacker:
            self.status.apply(defender, attacker, StatusKind.FROZEN, guard.freeze_source)

        offense: AttackModifiers = self.pipeline.resolve(SkillTrigger.ON_ATTACK, attacker, defender)
        defense: DefendModifiers = self.pipeline.resolve(SkillTrigger.ON_DEFEND, defender, attacker)

        if self.rng.chance(max(0, defense.dodge_rate - offense.hit_rate)):
            self.log.add(EventType.MISS, actor_id=attacker.id, target_id=defender.id)
            self._after_defend(defender, attacker, 0, dodged=True)
            return
        blocked = self.rng.chance(defense.block_rate)
        critical = self.rng.chance(offense.crit_rate)

        ignore = percent_of(defender.defense, offense.ignore_defense_percent)
        ignore += legacy.ignore_defense(attacker.legacy_skills)
        breakdown = self.calculator.compute(attacker, defender, ignore)
        element_effect = None
        if attacker.attack_element is not None and defender.defense_element is not None:
            element_effect = breakdown.relation.value

        if breakdown.relation is Relation.GENERATE:
            self.status.heal(defender, -breakdown.final, actor_id=attacker.id, element_effect=element_effect)
            return

        on_hit = legacy.roll_on_hit(attacker.legacy_skills, self.rng)
        for name in on_hit.triggered:
            self.log.add(EventType.SKILL_TRIGGERED, actor_id=attacker.id, target_id=defender.id, skill_name=name)

        damage_percent = offense.damage_percent
        embers = defender.status(StatusKind.EMBERS)
        if embers is not None and attacker.attack_element is not None and attacker.attack_element.element is Element.FIRE:
            damage_percent += embers.value

        amount = assemble_damage(
            breakdown.final,
            HitModifiers(
                critical=critical,
                crit_damage=offense.crit_damage,
                legacy_multiplier=on_hit.damage_multiplier,
                damage_percent=damage_percent,
                flat_bonus=offense.execute_damage + on_hit.bonus_damage,
                charge_percent=self.status.consume_charge(attacker),
                blocked=blocked,
                damage_reduction=defense.damage_reduction,
                low_hp_reduction=defense.low_hp_reduction,
            ),
            self.tuning.combat,
        )

        if blocked:
            self.log.add(EventType.BLOCK, actor_id=attacker.id, target_id=defender.id)
        if critical:
            self.log.add(EventType.CRITICAL, actor_id=attacker.id, target_id=defender.id)
        lost = self.status.deal_damage(
            defender,
            amount,
            attacker.id,
            element_effect=element_effect,
            is_critical=critical,
        )

        if on_hit.heal_amount > 0 and attacker.alive:
            self.status.heal(attacker, on_hit.heal_amount, skill_name=on_hit.triggered[-1])

        if defender.alive:
            after: AfterAttackEffects = self.pipeline.resolve(
                SkillTrigger.AFTER_ATTACK, attacker, defender, critical=critical
            )
            for proc in after.procs:
                self.status.apply_proc(attacker, defender, proc)
        self._after_defend(defender, attacker, lost, dodged=False)

    def _after_defend(self, defender: Combatant, attacker: Combatant, damage_taken: int, dodged: bool) -> None:
        effects: AfterDefendEffects = self.pipeline.resolve(
            SkillTrigger.AFTER_DEFEND, defender, attacker, damage_taken=damage_taken, dodged=dodged
        )
        if effects.reflect_percent > 0 and attacker.alive:
            reflected = percent_of(damage_taken, effects.reflect_percent)
            if reflected > 0:
                self.status.deal_damage(
                    attacker,
                    reflected,
                    defender.id,
                    EventType.REFLECT_DAMAGE,
                    skill_name=effects.reflect_by[0] if effects.reflect_by else None,
                )
        if not defender.alive:
            return
        if effects.heal_percent > 0:
            self.status.skill_heal(defender, effects.heal_percent, effects.heal_by[0] if effects.heal_by else None)
        for proc in effects.procs:
            self.status.apply_proc(defender, attacker, proc)
        if effects.charge:
            self.status.add_charge(defender, effects.charge_percent)

    def _aoe(self, actor: Combatant, strike: AoeStrike) -> None:
        self.log.add(EventType.SKILL_TRIGGERED, actor_id=actor.id, skill_name=strike.skill_name, is_aoe=True)
        targets = self.opponents_of(actor)
        scale = 100 + strike.per_extra_target_percent * max(0, len(targets) - 1)
        attack = max(1, actor.attack - actor.attack_debuff)

        total = 0
        for target in targets:
            if not target.alive:
                continue
            if strike.damage_percent > 0:
                base = max(attack - target.defense, 1)
                amount = max(1, int(base * strike.damage_percent * scale // 10000))
                total += self.status.deal_damage(
                    target, amount, actor.id, skill_name=strike.skill_name, is_aoe=True
                )
            if strike.apply_slow:
                self.status.apply(actor, target, StatusKind.SLOWED, strike.skill_name)
            if strike.apply_burning:
                self.status.apply(actor, target, StatusKind.BURNING, strike.skill_name)

        if strike.lifesteal_percent > 0 and total > 0 and actor.alive:
            healed = percent_of(total, strike.lifesteal_percent)
            if healed > 0:
                self.status.heal(actor, healed, skill_name=strike.skill_name, is_aoe=True)

    # --------------- Ending ---------------

    def _decided(self) -> bool:
        players = any(c.alive for c in self._combatants if c.is_player)
        enemies = any(c.alive for c in self._combatants if not c.is_player)
        return not (players and enemies)

    def _compute_winner(self) -> Optional[str]:
        players = [c for c in self._combatants if c.is_player and c.alive]
        enemies = [c for c in self._combatants if not c.is_player and c.alive]
        if players and not enemies:
            return players[0].id
        if enemies and not players:
            return enemies[0].id
        return None

    def _finish(self) -> None:
        self._winner_id = self._compute_winner()
        for c in self._combatants:
            if not c.alive:
                continue
            for skill in legacy.skills_for(c.legacy_skills, LegacyTrigger.BATTLE_END):
                self.log.add(EventType.SKILL_TRIGGERED, actor_id=c.id, skill_name=skill.name)
                if skill.heal > 0:
                    self.status.heal(c, skill.heal, skill_name=skill.name)
        self.log.add(
            EventType.BATTLE_END,
            actor_id=self._winner_id,
            value=self._round,
            message="draw" if self._winner_id is None else "victory",
        )
        self._state = EngineState.OVER
        logger.info("Battle over after %d rounds; winner=%s", self._round, self._winner_id)


__all__ = ["BattleEngine", "BattleResult", "RoundResult", "EngineState", "MAX_ROUNDS"]
