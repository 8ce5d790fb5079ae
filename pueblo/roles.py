"""Role behavior registry: a closed dispatch table from Role to its hooks.

Every hook is a plain function. Night hooks and death hooks return Effects (or None)
and never mutate the game; the night pipeline and the death resolver fold them.
Unknown or unassigned roles resolve to the villager default.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from pueblo.effects import Effects
from pueblo.errors import ActionRejected
from pueblo.rules import (
    ACTION_ARITY,
    ActionType,
    BANSHEE_WIN_POINTS,
    BITE_KILL_THRESHOLD,
    DEFAULT_ARITY,
    DeathCause,
    EventType,
    FIRST_NIGHT_ACTIONS,
    GUARDIAN_SELF_PROTECT_LIMIT,
    Phase,
    Protection,
    Role,
    ROLE_ACTIONS,
    SEER_WOLF_ROLES,
    Team,
    VAMPIRE_WIN_KILLS,
    WOLF_ROLES,
)
from pueblo.state import Game, NightAction, Player

if TYPE_CHECKING:
    from pueblo.night import NightContext


@dataclass(frozen=True)
class DeathContext:
    """What an on_death hook sees: the game after the player was marked dead."""

    game: Game
    player: Player
    cause: DeathCause


NightHook = Callable[["NightContext", Player, NightAction], Optional[Effects]]
Validator = Callable[[Game, Player, NightAction], None]
DeathHook = Callable[[DeathContext], Optional[Effects]]
WatchHook = Callable[[Game, Player, Player, DeathCause], Optional[Effects]]
WinCheck = Callable[[Game, Player], bool]
LynchWinCheck = Callable[[Game, Player, Player], bool]
RevealCheck = Callable[[Game, Player, DeathCause], bool]


@dataclass(frozen=True)
class RoleBehavior:
    """Hooks for one role. Missing hooks are no-ops."""

    team: Team = Team.VILLAGE
    description: str = "An ordinary villager with no special power."
    night_action: Optional[NightHook] = None
    validate: Optional[Validator] = None
    on_death: Optional[DeathHook] = None
    on_other_death: Optional[WatchHook] = None
    check_win: Optional[WinCheck] = None
    lynch_win: Optional[LynchWinCheck] = None
    reveal_instead_of_death: Optional[RevealCheck] = None
    win_code: Optional[str] = None
    win_message: str = ""


def _name(game: Game, player_id: Optional[str]) -> str:
    player = game.get_player(player_id)
    return player.name if player else "Someone"


def _wolf_recipients(game: Game) -> tuple[str, ...]:
    return tuple(p.id for p in game.get_alive_players() if p.team == Team.WOLVES)


# --- night hooks ---------------------------------------------------------------


def _werewolf_kill(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    game = ctx.game
    if game.effects.leper_blocked_round == game.round:
        return None
    effects = Effects()
    for target_id in action.target_ids:
        target = game.get_player(target_id)
        if target is None or not target.is_alive:
            continue
        if ctx.is_protected(target_id, Protection.GUARD, Protection.BLESS):
            effects.blocked.append(target_id)
            continue
        if target.role == Role.CURSED:
            if ctx.pending(target_id, "role", target.role) != Role.CURSED:
                continue
            effects.update_player(target_id, role=Role.WEREWOLF, team=Team.WOLVES)
            effects.event(
                EventType.PLAYER_TRANSFORMED,
                f"{target.name} was bitten and has become a werewolf!",
                {"target_id": target_id, "new_role": Role.WEREWOLF.value},
                recipient_ids=(target_id,) + _wolf_recipients(game),
            )
            continue
        effects.mark(target_id, DeathCause.WEREWOLF_KILL, source_id=actor.id)
    return effects


def _sorceress(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    game = ctx.game
    target_id = action.target_id
    effects = Effects()
    if action.action_type == ActionType.SORCERESS_POISON:
        effects.update_player(actor.id, poison_used_round=game.round)
        if ctx.is_protected(target_id, Protection.BLESS):
            effects.blocked.append(target_id)
        else:
            effects.mark(target_id, DeathCause.POISON, source_id=actor.id)
        return effects
    effects.update_player(actor.id, save_used_round=game.round)
    effects.unmarks.append(target_id)
    return effects


def _vampire_bite(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    target = ctx.game.get_player(action.target_id)
    if target is None or not target.is_alive:
        return None
    bites = ctx.pending(target.id, "bite_count", target.bite_count) + 1
    effects = Effects().update_player(target.id, bite_count=bites)
    if bites >= BITE_KILL_THRESHOLD:
        effects.mark(target.id, DeathCause.VAMPIRE_KILL, unstoppable=True, source_id=actor.id)
        effects.set_flags(vampire_kills=ctx.flag("vampire_kills") + 1)
    return effects


def _fairy(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    game = ctx.game
    target = game.get_player(action.target_id)
    if target is None:
        return None
    if action.action_type == ActionType.FAIRY_FIND:
        if ctx.flag("fairies_found"):
            return None
        if target.role != Role.SLEEPING_FAIRY:
            return Effects().event(
                EventType.SPECIAL,
                f"Your search was in vain. {target.name} is not the sleeping fairy.",
                {"target_id": target.id},
                recipient_ids=(actor.id,),
            )
        return (
            Effects()
            .set_flags(fairies_found=True)
            .update_player(target.id, team=Team.WOLVES)
            .event(
                EventType.SPECIAL,
                "The fairies have found each other. A dark power has awakened.",
                {"seeker_id": actor.id, "sleeper_id": target.id},
                recipient_ids=(actor.id, target.id),
            )
        )
    if not ctx.flag("fairies_found") or ctx.flag("fairy_kill_used"):
        return None
    effects = Effects().set_flags(fairy_kill_used=True)
    if ctx.is_protected(target.id, Protection.BLESS):
        effects.blocked.append(target.id)
    else:
        effects.mark(target.id, DeathCause.FAIRY_KILL, source_id=actor.id)
    return effects


def _doctor_heal(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    effects = Effects().update_player(
        actor.id, last_healed_round=ctx.game.round, last_healed_target_id=action.target_id
    )
    effects.protections.append((action.target_id, Protection.GUARD, actor.id))
    return effects


def _guardian_protect(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    effects = Effects().update_player(
        actor.id, last_guarded_round=ctx.game.round, last_guarded_target_id=action.target_id
    )
    if action.target_id == actor.id:
        effects.update_player(actor.id, guardian_self_protects=actor.guardian_self_protects + 1)
    effects.protections.append((action.target_id, Protection.GUARD, actor.id))
    return effects


def _priest_bless(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    effects = Effects()
    if action.target_id == actor.id:
        effects.update_player(actor.id, priest_self_bless_used=True)
    effects.protections.append((action.target_id, Protection.BLESS, actor.id))
    return effects


def _seer_check(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    if actor.role == Role.SEER_APPRENTICE and not ctx.flag("seer_died"):
        return None
    target = ctx.game.get_player(action.target_id)
    if target is None:
        return None
    is_wolf = target.role in SEER_WOLF_ROLES
    verdict = "is a werewolf" if is_wolf else "is not a werewolf"
    return Effects().event(
        EventType.SPECIAL,
        f"Your vision is clear: {target.name} {verdict}.",
        {"target_id": target.id, "is_wolf": is_wolf},
        recipient_ids=(actor.id,),
    )


def _witch_hunt(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    target = ctx.game.get_player(action.target_id)
    if target is None:
        return None
    if target.role != Role.SEER:
        return Effects().event(
            EventType.SPECIAL,
            f"Your hunt was in vain. {target.name} is not the seer.",
            {"target_id": target.id},
            recipient_ids=(actor.id,),
        )
    recipients = tuple(dict.fromkeys((actor.id,) + _wolf_recipients(ctx.game)))
    return (
        Effects()
        .set_flags(witch_found_seer=True)
        .event(
            EventType.SPECIAL,
            f"The witch has found the seer: {target.name}. The wolves now know their ally.",
            {"target_id": target.id, "witch_id": actor.id},
            recipient_ids=recipients,
        )
    )


def _lookout_spy(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    effects = Effects().update_player(actor.id, lookout_used=True)
    effects.watches.append((actor.id, action.target_id))
    return effects


def _cult_recruit(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().update_player(action.target_id, is_cult_member=True)


def _fisherman_catch(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    target = ctx.game.get_player(action.target_id)
    if target is None:
        return None
    if target.role in WOLF_ROLES:
        return Effects().mark(
            actor.id,
            DeathCause.SPECIAL,
            unstoppable=True,
            message=f"{actor.name} hauled a wolf into the boat and was dragged under. Their role was: {Role.FISHERMAN.value}.",
        )
    boat = list(ctx.flag("boat"))
    if target.id not in boat:
        boat.append(target.id)
    return Effects().set_flags(boat=boat)


def _cupid_love(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    first, second = action.target_ids
    game = ctx.game
    effects = Effects().update_player(first, is_lover=True).update_player(second, is_lover=True)
    effects.lovers = (first, second)
    for me, other in ((first, second), (second, first)):
        effects.event(
            EventType.SPECIAL,
            f"Cupid's arrow has struck. You are in love with {_name(game, other)}.",
            {"lover_id": other},
            recipient_ids=(me,),
        )
    return effects


def _shapeshifter_select(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().update_player(actor.id, shapeshifter_target_id=action.target_id)


def _virginia_link(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().update_player(actor.id, linked_target_id=action.target_id)


def _siren_charm(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().update_player(actor.id, siren_target_id=action.target_id)


def _elder_exile(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().set_flags(exiled_player_id=action.target_id, exiled_round=ctx.game.round)


def _silencer_silence(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    return Effects().set_flags(silenced_player_id=action.target_id, silenced_round=ctx.game.round)


def _resurrect(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    target = ctx.game.get_player(action.target_id)
    if target is None or target.is_alive:
        return None
    return (
        Effects()
        .update_player(actor.id, resurrection_used=True)
        .update_player(target.id, is_alive=True)
        .event(
            EventType.SPECIAL,
            f"A miracle! {target.name} has been brought back to life.",
            {"target_id": target.id},
        )
    )


def _banshee_scream(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    screams = dict(ctx.pending(actor.id, "banshee_screams", actor.banshee_screams))
    screams[ctx.game.round] = action.target_id
    return Effects().update_player(actor.id, banshee_screams=screams)


# --- validators ------------------------------------------------------------------


def _not_self(game: Game, actor: Player, action: NightAction) -> None:
    if actor.id in action.target_ids:
        raise ActionRejected(f"{action.action_type.value} cannot target yourself")


def _validate_werewolf(game: Game, actor: Player, action: NightAction) -> None:
    for target_id in action.target_ids:
        target = game.get_player(target_id)
        if target is not None and target.team == Team.WOLVES:
            raise ActionRejected("wolves cannot attack their own pack")
    if len(action.target_ids) > 1 and game.effects.wolf_cub_revenge_round != game.round:
        raise ActionRejected("a second victim is only allowed after the wolf cub dies")


def _validate_doctor(game: Game, actor: Player, action: NightAction) -> None:
    if actor.last_healed_round == game.round - 1 and actor.last_healed_target_id == action.target_id:
        raise ActionRejected("doctor cannot heal the same player two nights in a row")


def _validate_guardian(game: Game, actor: Player, action: NightAction) -> None:
    if actor.last_guarded_round == game.round - 1 and actor.last_guarded_target_id == action.target_id:
        raise ActionRejected("guardian cannot protect the same player two nights in a row")
    if action.target_id == actor.id and actor.guardian_self_protects >= GUARDIAN_SELF_PROTECT_LIMIT:
        raise ActionRejected("guardian self protection already used")


def _validate_priest(game: Game, actor: Player, action: NightAction) -> None:
    if action.target_id == actor.id and actor.priest_self_bless_used:
        raise ActionRejected("priest self blessing already used")


def _validate_sorceress(game: Game, actor: Player, action: NightAction) -> None:
    if action.action_type == ActionType.SORCERESS_POISON:
        _not_self(game, actor, action)


def _validate_fisherman(game: Game, actor: Player, action: NightAction) -> None:
    _not_self(game, actor, action)
    if action.target_id in game.effects.boat:
        raise ActionRejected("player is already in the boat")


def _validate_cult(game: Game, actor: Player, action: NightAction) -> None:
    target = game.get_player(action.target_id)
    if target is not None and target.is_cult_member:
        raise ActionRejected("player already belongs to the cult")


# --- death hooks ---------------------------------------------------------------


def _seer_died(ctx: DeathContext) -> Optional[Effects]:
    return Effects().set_flags(seer_died=True)


def _hunter_died(ctx: DeathContext) -> Optional[Effects]:
    return Effects(hunter_pending=ctx.player.id)


def _wolf_cub_died(ctx: DeathContext) -> Optional[Effects]:
    return Effects().set_flags(wolf_cub_revenge_round=ctx.game.round + 1)


def _leper_died(ctx: DeathContext) -> Optional[Effects]:
    if ctx.cause != DeathCause.WEREWOLF_KILL:
        return None
    return Effects().set_flags(leper_blocked_round=ctx.game.round + 1)


def _executioner_watch(game: Game, watcher: Player, dead: Player, cause: DeathCause) -> Optional[Effects]:
    if watcher.executioner_target_id != dead.id or cause == DeathCause.VOTE_RESULT:
        return None
    return (
        Effects()
        .update_player(watcher.id, role=Role.VILLAGER, team=Team.VILLAGE)
        .event(
            EventType.SPECIAL,
            f"{dead.name} died before the village could lynch them. You are now a villager.",
            {"target_id": dead.id},
            recipient_ids=(watcher.id,),
        )
    )


def _shapeshifter_watch(game: Game, watcher: Player, dead: Player, cause: DeathCause) -> Optional[Effects]:
    if watcher.shapeshifter_target_id != dead.id or dead.role is None:
        return None
    return (
        Effects()
        .update_player(watcher.id, role=dead.role, team=dead.team)
        .event(
            EventType.SPECIAL,
            f"{dead.name} has died. You take their form and become: {dead.role.value}.",
            {"target_id": dead.id, "new_role": dead.role.value},
            recipient_ids=(watcher.id,),
        )
    )


def _banshee_watch(game: Game, watcher: Player, dead: Player, cause: DeathCause) -> Optional[Effects]:
    # Only deaths during night resolution count; lynches, fights and shots do not
    if game.phase != Phase.NIGHT or watcher.banshee_screams.get(game.round) != dead.id:
        return None
    return Effects().update_player(watcher.id, banshee_points=watcher.banshee_points + 1)


# --- win hooks -----------------------------------------------------------------


def _vampire_wins(game: Game, player: Player) -> bool:
    return game.effects.vampire_kills >= VAMPIRE_WIN_KILLS


def _cult_wins(game: Game, player: Player) -> bool:
    alive = game.get_alive_players()
    return bool(alive) and all(p.is_cult_member for p in alive)


def _fisherman_wins(game: Game, player: Player) -> bool:
    if not player.is_alive:
        return False
    villagers = [p for p in game.get_alive_players() if p.team == Team.VILLAGE and p.id != player.id]
    return bool(villagers) and all(p.id in game.effects.boat for p in villagers)


def _banshee_wins(game: Game, player: Player) -> bool:
    return player.is_alive and player.banshee_points >= BANSHEE_WIN_POINTS


def _lynched_self(game: Game, player: Player, lynched: Player) -> bool:
    return player.id == lynched.id


def _lynched_target(game: Game, player: Player, lynched: Player) -> bool:
    return player.executioner_target_id == lynched.id


def _prince_reveals(game: Game, player: Player, cause: DeathCause) -> bool:
    return cause == DeathCause.VOTE_RESULT and not player.prince_revealed


VILLAGER = RoleBehavior()

ROLE_BEHAVIORS: dict[Role, RoleBehavior] = {
    Role.VILLAGER: VILLAGER,
    Role.SEER: RoleBehavior(
        description="Each night, learn whether one player is a werewolf.",
        night_action=_seer_check,
        on_death=_seer_died,
    ),
    Role.SEER_APPRENTICE: RoleBehavior(
        description="Inherits the seer's vision once the seer has died.",
        night_action=_seer_check,
    ),
    Role.DOCTOR: RoleBehavior(
        description="Each night, protect one player from the wolves. Never the same player two nights running.",
        night_action=_doctor_heal,
        validate=_validate_doctor,
    ),
    Role.GUARDIAN: RoleBehavior(
        description="Each night, guard one player from the wolves. You may guard yourself once.",
        night_action=_guardian_protect,
        validate=_validate_guardian,
    ),
    Role.PRIEST: RoleBehavior(
        description="Each night, bless one player against every night attack. You may bless yourself once.",
        night_action=_priest_bless,
        validate=_validate_priest,
    ),
    Role.HUNTER: RoleBehavior(
        description="When you die, you take one last shot at another player.",
        on_death=_hunter_died,
    ),
    Role.CUPID: RoleBehavior(
        description="On the first night, make two players fall in love. If one dies, so does the other.",
        night_action=_cupid_love,
    ),
    Role.PRINCE: RoleBehavior(
        description="The first time the village lynches you, you reveal yourself and survive.",
        reveal_instead_of_death=_prince_reveals,
    ),
    Role.LYCANTHROPE: RoleBehavior(description="A villager the seer sees as a werewolf."),
    Role.TWIN: RoleBehavior(description="You know your twin. If one of you dies, the other dies of grief."),
    Role.SORCERESS: RoleBehavior(
        description="You have one poison potion and one saving potion.",
        night_action=_sorceress,
        validate=_validate_sorceress,
    ),
    Role.GHOST: RoleBehavior(description="Once dead, you may send one anonymous message to a living player."),
    Role.VIRGINIA_WOOLF: RoleBehavior(
        description="On the first night, bind yourself to a player. If you die, they die with you.",
        night_action=_virginia_link,
        validate=_not_self,
    ),
    Role.LEPER: RoleBehavior(
        description="If the wolves kill you, they fall ill and cannot attack the next night.",
        on_death=_leper_died,
    ),
    Role.RIVER_SIREN: RoleBehavior(
        description="On the first night, charm a player. Their vote always follows yours.",
        night_action=_siren_charm,
        validate=_not_self,
    ),
    Role.LOOKOUT: RoleBehavior(
        description="Once per game, watch a player at night and learn who visits them.",
        night_action=_lookout_spy,
        validate=_not_self,
    ),
    Role.TROUBLEMAKER: RoleBehavior(description="Once per game, by day, start a fight that kills two players."),
    Role.SILENCER: RoleBehavior(
        description="Each night, silence a player for the following day.",
        night_action=_silencer_silence,
    ),
    Role.ELDER_LEADER: RoleBehavior(
        description="Each night, exile a player so their night power fails.",
        night_action=_elder_exile,
        validate=_not_self,
    ),
    Role.RESURRECTOR_ANGEL: RoleBehavior(
        description="Once per game, bring a dead player back to life.",
        night_action=_resurrect,
    ),
    Role.WEREWOLF: RoleBehavior(
        team=Team.WOLVES,
        description="Each night, the pack chooses a victim.",
        night_action=_werewolf_kill,
        validate=_validate_werewolf,
    ),
    Role.WOLF_CUB: RoleBehavior(
        team=Team.WOLVES,
        description="A young wolf. If you die, the pack kills twice the next night.",
        night_action=_werewolf_kill,
        validate=_validate_werewolf,
        on_death=_wolf_cub_died,
    ),
    Role.CURSED: RoleBehavior(description="A villager who becomes a werewolf if bitten."),
    Role.WITCH: RoleBehavior(
        team=Team.WOLVES,
        description="Allied with the wolves. Each night, hunt for the seer.",
        night_action=_witch_hunt,
        validate=_not_self,
    ),
    Role.SEEKER_FAIRY: RoleBehavior(
        team=Team.WOLVES,
        description="Allied with the wolves. Find the sleeping fairy to unlock a single deadly curse.",
        night_action=_fairy,
        validate=_not_self,
    ),
    Role.SLEEPING_FAIRY: RoleBehavior(description="Sleeps among the villagers until the seeker fairy finds you."),
    Role.SHAPESHIFTER: RoleBehavior(
        team=Team.NEUTRAL,
        description="On the first night, choose a player. When they die, you take their role.",
        night_action=_shapeshifter_select,
        validate=_not_self,
        on_other_death=_shapeshifter_watch,
    ),
    Role.DRUNK_MAN: RoleBehavior(
        team=Team.NEUTRAL,
        description="You win alone if the village lynches you.",
        lynch_win=_lynched_self,
        win_code="drunk_man",
        win_message="The drunk man has won! The village lynched him, just as he wanted.",
    ),
    Role.CULT_LEADER: RoleBehavior(
        team=Team.NEUTRAL,
        description="Each night, recruit a player. You win when every survivor belongs to the cult.",
        night_action=_cult_recruit,
        validate=_validate_cult,
        check_win=_cult_wins,
        win_code="cult",
        win_message="The cult has won! Every survivor now follows the leader.",
    ),
    Role.FISHERMAN: RoleBehavior(
        team=Team.NEUTRAL,
        description="Each night, bring a player onto your boat. Catch a wolf and you drown.",
        night_action=_fisherman_catch,
        validate=_validate_fisherman,
        check_win=_fisherman_wins,
        win_code="fisherman",
        win_message="The fisherman has won! Every villager is safe aboard his boat.",
    ),
    Role.VAMPIRE: RoleBehavior(
        team=Team.NEUTRAL,
        description="Each night, bite a player. Three bites kill. Three kills and you win.",
        night_action=_vampire_bite,
        validate=_not_self,
        check_win=_vampire_wins,
        win_code="vampire",
        win_message="The vampire has won! Three victims claimed, the night belongs to him.",
    ),
    Role.BANSHEE: RoleBehavior(
        team=Team.NEUTRAL,
        description="Each night, predict a death. Two correct predictions and you win.",
        night_action=_banshee_scream,
        validate=_not_self,
        on_other_death=_banshee_watch,
        check_win=_banshee_wins,
        win_code="banshee",
        win_message="The banshee has won! Her screams foretold the deaths.",
    ),
    Role.EXECUTIONER: RoleBehavior(
        team=Team.NEUTRAL,
        description="You win if the village lynches your target.",
        on_other_death=_executioner_watch,
        lynch_win=_lynched_target,
        win_code="executioner",
        win_message="The executioner has won! The village lynched his target.",
    ),
}


def behavior_for(role: Optional[Role]) -> RoleBehavior:
    """Return the behavior for a role. Unknown or unassigned roles act as villagers."""
    if role is None:
        return VILLAGER
    try:
        return ROLE_BEHAVIORS.get(Role(role), VILLAGER)
    except ValueError:
        return VILLAGER


def default_team(role: Optional[Role]) -> Team:
    return behavior_for(role).team


def available_actions(game: Game, player: Player) -> tuple[ActionType, ...]:
    """Night actions the player may submit this round."""
    if not player.is_alive or player.role is None:
        return ()
    fx = game.effects
    allowed = []
    for action_type in ROLE_ACTIONS.get(player.role, ()):
        if action_type in FIRST_NIGHT_ACTIONS and game.round != 1:
            continue
        if player.role == Role.SEER_APPRENTICE and not fx.seer_died:
            continue
        if action_type == ActionType.FAIRY_FIND and fx.fairies_found:
            continue
        if action_type == ActionType.FAIRY_KILL and (not fx.fairies_found or fx.fairy_kill_used):
            continue
        if action_type == ActionType.SORCERESS_POISON and player.poison_used_round is not None:
            continue
        if action_type == ActionType.SORCERESS_SAVE and player.save_used_round is not None:
            continue
        if action_type == ActionType.LOOKOUT_SPY and player.lookout_used:
            continue
        if action_type == ActionType.RESURRECT and (player.resurrection_used or not game.get_dead_players()):
            continue
        allowed.append(action_type)
    return tuple(allowed)


def perform_night_action(ctx: "NightContext", actor: Player, action: NightAction) -> Optional[Effects]:
    hook = behavior_for(actor.role).night_action
    return hook(ctx, actor, action) if hook else None


def run_on_death(game: Game, player: Player, cause: DeathCause) -> Optional[Effects]:
    hook = behavior_for(player.role).on_death
    return hook(DeathContext(game=game, player=player, cause=cause)) if hook else None


def run_on_other_death(game: Game, watcher: Player, dead: Player, cause: DeathCause) -> Optional[Effects]:
    hook = behavior_for(watcher.role).on_other_death
    return hook(game, watcher, dead, cause) if hook else None


def reveals_instead_of_death(game: Game, player: Player, cause: DeathCause) -> bool:
    hook = behavior_for(player.role).reveal_instead_of_death
    return bool(hook and hook(game, player, cause))


def validate_night_action(game: Game, actor: Player, action: NightAction) -> None:
    """Raise ActionRejected unless the action is legal for this actor this round."""
    if action.action_type not in available_actions(game, actor):
        raise ActionRejected(f"{action.action_type.value} is not available to {actor.id}")
    low, high = ACTION_ARITY.get(action.action_type, DEFAULT_ARITY)
    if not low <= len(action.target_ids) <= high:
        raise ActionRejected(f"{action.action_type.value} takes {low}-{high} targets")
    if len(set(action.target_ids)) != len(action.target_ids):
        raise ActionRejected("duplicate targets")
    wants_dead = action.action_type == ActionType.RESURRECT
    for target_id in action.target_ids:
        target = game.get_player(target_id)
        if target is None:
            raise ActionRejected(f"unknown target {target_id}")
        if target.is_alive == wants_dead:
            raise ActionRejected(f"target {target_id} is not a valid {'dead' if wants_dead else 'living'} player")
    hook = behavior_for(actor.role).validate
    if hook:
        hook(game, actor, action)
