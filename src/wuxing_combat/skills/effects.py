"""
Concrete hooks for every attribute skill in the packaged table and for the
elemental passives. Importing this module registers them.
"""

from __future__ import annotations

from ..combat.combatant import StatusKind
from .hooks import Delta, HookContext, Proc, passive_hook, skill_hook
from .passives import PassiveKind
from .registry import SkillTrigger as T

# =============================================================================
# Metal
# =============================================================================


@skill_hook("ruidu", T.ON_ATTACK)
def ruidu(ctx: HookContext) -> Delta:
    return {"crit_rate": ctx.value}


@skill_hook("fengmang", T.ON_ATTACK)
def fengmang(ctx: HookContext) -> Delta:
    return {"crit_damage": ctx.value}


@skill_hook("pojia", T.ON_ATTACK)
def pojia(ctx: HookContext) -> Delta:
    return {"ignore_defense_percent": ctx.value}


@skill_hook("shayi", T.ON_ATTACK)
def shayi(ctx: HookContext) -> Delta:
    if ctx.opponent is not None and ctx.opponent.hp_ratio < ctx.tuning.combat.execute_threshold:
        return {"execute_damage": ctx.value}
    return {}


@skill_hook("hanfeng", T.AFTER_ATTACK)
def hanfeng(ctx: HookContext) -> Delta:
    if ctx.get("critical"):
        return {"procs": [Proc(StatusKind.SLOWED, ctx.value, ctx.name)]}
    return {}


# =============================================================================
# Water
# =============================================================================


@skill_hook("lingdong", T.ON_DEFEND)
def lingdong(ctx: HookContext) -> Delta:
    return {"dodge_rate": ctx.value}


@skill_hook("dongcha", T.ON_ATTACK)
def dongcha(ctx: HookContext) -> Delta:
    return {"hit_rate": ctx.value}


@skill_hook("ningzhi", T.AFTER_ATTACK)
def ningzhi(ctx: HookContext) -> Delta:
    return {"procs": [Proc(StatusKind.SLOWED, ctx.value, ctx.name)]}


@skill_hook("xuanbing", T.ON_ATTACK)
def xuanbing(ctx: HookContext) -> Delta:
    if ctx.opponent is not None and ctx.opponent.has_status(StatusKind.SLOWED):
        return {"damage_percent": ctx.value}
    return {}


@skill_hook("runze", T.AFTER_DEFEND)
def runze(ctx: HookContext) -> Delta:
    if ctx.get("dodged"):
        return {"heal_percent": ctx.value, "heal_by": [ctx.name]}
    return {}


# =============================================================================
# Wood
# =============================================================================


@skill_hook("genji", T.BATTLE_INIT)
def genji(ctx: HookContext) -> Delta:
    return {"max_hp_flat": int(ctx.value)}


@skill_hook("shengji", T.TURN_START)
def shengji(ctx: HookContext) -> Delta:
    return {"heals": [(ctx.name, ctx.value)]}


@skill_hook("renxing", T.ON_DEFEND)
def renxing(ctx: HookContext) -> Delta:
    if ctx.owner.hp_ratio < ctx.tuning.combat.low_hp_defense_threshold:
        return {"low_hp_reduction": ctx.value}
    return {}


@skill_hook("fengchun", T.ON_LOW_HP)
def fengchun(ctx: HookContext) -> Delta:
    return {"survive_chance": ctx.value, "chance_by": [ctx.name]}


@skill_hook("numu", T.ON_ATTACK)
def numu(ctx: HookContext) -> Delta:
    if ctx.owner.hp_ratio < ctx.tuning.combat.low_hp_attack_threshold:
        return {"damage_percent": ctx.value}
    return {}


# =============================================================================
# Fire
# =============================================================================


@skill_hook("yanwei", T.BATTLE_INIT)
def yanwei(ctx: HookContext) -> Delta:
    return {"attack_percent": ctx.value}


@skill_hook("liaoyuan", T.AFTER_ATTACK)
def liaoyuan(ctx: HookContext) -> Delta:
    return {"procs": [Proc(StatusKind.BURNING, ctx.value, ctx.name)]}


@skill_hook("baoran", T.ON_ATTACK)
def baoran(ctx: HookContext) -> Delta:
    if ctx.opponent is not None and ctx.opponent.has_status(StatusKind.BURNING):
        return {"damage_percent": ctx.value}
    return {}


@skill_hook("fenyi", T.ON_ATTACK)
def fenyi(ctx: HookContext) -> Delta:
    bonus = int(ctx.value * (1 - ctx.owner.hp_ratio))
    return {"damage_percent": bonus} if bonus > 0 else {}


@skill_hook("yujin", T.AFTER_DEFEND)
def yujin(ctx: HookContext) -> Delta:
    if ctx.get("damage_taken", 0) > 0:
        return {"procs": [Proc(StatusKind.BURNING, ctx.value, ctx.name)]}
    return {}


# =============================================================================
# Earth
# =============================================================================


@skill_hook("jianbi", T.BATTLE_INIT)
def jianbi(ctx: HookContext) -> Delta:
    return {"defense_percent": ctx.value}


@skill_hook("panshi", T.ON_DEFEND)
def panshi(ctx: HookContext) -> Delta:
    return {"block_rate": ctx.value}


@skill_hook("houtu", T.ON_DEFEND)
def houtu(ctx: HookContext) -> Delta:
    return {"damage_reduction": ctx.value}


@skill_hook("fanzhen", T.AFTER_DEFEND)
def fanzhen(ctx: HookContext) -> Delta:
    if ctx.get("damage_taken", 0) > 0:
        return {"reflect_percent": ctx.value, "reflect_by": [ctx.name]}
    return {}


@skill_hook("xushi", T.AFTER_DEFEND)
def xushi(ctx: HookContext) -> Delta:
    if ctx.get("damage_taken", 0) > 0:
        return {"charge": True, "charge_percent": ctx.value}
    return {}


# =============================================================================
# AOE (the per-level value is the trigger chance, rolled by the pipeline)
# =============================================================================


@skill_hook("liekongzhan", T.AOE_ATTACK)
def liekongzhan(ctx: HookContext) -> Delta:
    return {"damage_percent": 70}


@skill_hook("hanchao", T.AOE_ATTACK)
def hanchao(ctx: HookContext) -> Delta:
    return {"damage_percent": 50, "apply_slow": True}


@skill_hook("jingji", T.AOE_ATTACK)
def jingji(ctx: HookContext) -> Delta:
    return {"damage_percent": 50, "lifesteal_percent": ctx.tuning.aoe.lifesteal_percent}


@skill_hook("fentian", T.AOE_ATTACK)
def fentian(ctx: HookContext) -> Delta:
    return {"apply_burning": True}


@skill_hook("dilie", T.AOE_ATTACK)
def dilie(ctx: HookContext) -> Delta:
    return {"damage_percent": 60, "per_extra_target_percent": ctx.tuning.aoe.per_extra_target_percent}


# =============================================================================
# Elemental passives
# =============================================================================


@passive_hook(PassiveKind.METAL_PENETRATE, T.ON_ATTACK)
def metal_penetrate(ctx: HookContext) -> Delta:
    return {"ignore_defense_percent": ctx.value}


@passive_hook(PassiveKind.METAL_BLEED, T.AFTER_ATTACK)
def metal_bleed(ctx: HookContext) -> Delta:
    return {"procs": [Proc(StatusKind.BLEEDING, ctx.value, ctx.name)]}


@passive_hook(PassiveKind.WOOD_REGEN, T.BATTLE_INIT)
def wood_regen(ctx: HookContext) -> Delta:
    return {"regen_percent": ctx.value, "regen_doubles_when_low": bool(ctx.secondary)}


@passive_hook(PassiveKind.WOOD_SURVIVE, T.ON_LOW_HP)
def wood_survive(ctx: HookContext) -> Delta:
    return {"guaranteed_by": [ctx.name]}


@passive_hook(PassiveKind.WOOD_REVIVE, T.ON_LOW_HP)
def wood_revive(ctx: HookContext) -> Delta:
    return {"revive_percent": ctx.tuning.revive.percent, "revive_by": [ctx.name]}


@passive_hook(PassiveKind.WATER_SLOW, T.AFTER_ATTACK, T.ON_ATTACK)
def water_slow(ctx: HookContext) -> Delta:
    if ctx.phase is T.AFTER_ATTACK:
        return {"procs": [Proc(StatusKind.SLOWED, ctx.value, ctx.name)]}
    if ctx.secondary and ctx.opponent is not None and ctx.opponent.has_status(StatusKind.SLOWED):
        return {"damage_percent": ctx.secondary}
    return {}


@passive_hook(PassiveKind.WATER_FREEZE, T.AFTER_ATTACK)
def water_freeze(ctx: HookContext) -> Delta:
    return {"procs": [Proc(StatusKind.FROZEN, ctx.value, ctx.name)]}


@passive_hook(PassiveKind.FIRE_BURN, T.AFTER_ATTACK)
def fire_burn(ctx: HookContext) -> Delta:
    return {"procs": [Proc(StatusKind.BURNING, ctx.value, ctx.name)]}


@passive_hook(PassiveKind.EARTH_REDUCE, T.ON_DEFEND)
def earth_reduce(ctx: HookContext) -> Delta:
    return {"damage_reduction": ctx.value}


@passive_hook(PassiveKind.EARTH_REFLECT, T.AFTER_DEFEND)
def earth_reflect(ctx: HookContext) -> Delta:
    if ctx.get("damage_taken", 0) > 0:
        return {"reflect_percent": ctx.value, "reflect_by": [ctx.name]}
    return {}


@passive_hook(PassiveKind.EARTH_REVENGE, T.AFTER_DEFEND)
def earth_revenge(ctx: HookContext) -> Delta:
    if ctx.get("damage_taken", 0) > 0:
        return {"charge": True}
    return {}
