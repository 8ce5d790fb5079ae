"""Game rules and constants for El Pueblo."""

from enum import Enum


class Role(str, Enum):
    """Player roles in the game."""

    VILLAGER = "villager"
    SEER = "seer"
    DOCTOR = "doctor"
    HUNTER = "hunter"
    CUPID = "cupid"
    GUARDIAN = "guardian"
    PRIEST = "priest"
    PRINCE = "prince"
    LYCANTHROPE = "lycanthrope"
    TWIN = "twin"
    SORCERESS = "sorceress"
    GHOST = "ghost"
    VIRGINIA_WOOLF = "virginia_woolf"
    LEPER = "leper"
    RIVER_SIREN = "river_siren"
    LOOKOUT = "lookout"
    TROUBLEMAKER = "troublemaker"
    SILENCER = "silencer"
    SEER_APPRENTICE = "seer_apprentice"
    ELDER_LEADER = "elder_leader"
    RESURRECTOR_ANGEL = "resurrector_angel"
    WEREWOLF = "werewolf"
    WOLF_CUB = "wolf_cub"
    CURSED = "cursed"
    WITCH = "witch"
    SEEKER_FAIRY = "seeker_fairy"
    SLEEPING_FAIRY = "sleeping_fairy"
    SHAPESHIFTER = "shapeshifter"
    DRUNK_MAN = "drunk_man"
    CULT_LEADER = "cult_leader"
    FISHERMAN = "fisherman"
    VAMPIRE = "vampire"
    BANSHEE = "banshee"
    EXECUTIONER = "executioner"


class Team(str, Enum):
    """Alliance a player currently plays for."""

    VILLAGE = "village"
    WOLVES = "wolves"
    NEUTRAL = "neutral"


class Phase(str, Enum):
    """Current game phase."""

    WAITING = "waiting"
    ROLE_REVEAL = "role_reveal"
    NIGHT = "night"
    DAY = "day"
    TIEBREAK = "tiebreak"
    JURY_VOTING = "jury_voting"
    HUNTER_SHOT = "hunter_shot"
    FINISHED = "finished"


class ActionType(str, Enum):
    """Night action tags. Each maps to one priority band and one arity."""

    CUPID_LOVE = "cupid_love"
    SHAPESHIFTER_SELECT = "shapeshifter_select"
    VIRGINIA_WOOLF_LINK = "virginia_woolf_link"
    RIVER_SIREN_CHARM = "river_siren_charm"
    ELDER_LEADER_EXILE = "elder_leader_exile"
    SILENCER_SILENCE = "silencer_silence"
    PRIEST_BLESS = "priest_bless"
    GUARDIAN_PROTECT = "guardian_protect"
    DOCTOR_HEAL = "doctor_heal"
    SEER_CHECK = "seer_check"
    WITCH_HUNT = "witch_hunt"
    FAIRY_FIND = "fairy_find"
    LOOKOUT_SPY = "lookout_spy"
    CULT_RECRUIT = "cult_recruit"
    FISHERMAN_CATCH = "fisherman_catch"
    WEREWOLF_KILL = "werewolf_kill"
    SORCERESS_POISON = "sorceress_poison"
    VAMPIRE_BITE = "vampire_bite"
    FAIRY_KILL = "fairy_kill"
    SORCERESS_SAVE = "sorceress_save"
    RESURRECT = "resurrect"
    BANSHEE_SCREAM = "banshee_scream"


class EventType(str, Enum):
    """Type tag of a game event."""

    GAME_START = "game_start"
    PHASE_CHANGE = "phase_change"
    NIGHT_RESULT = "night_result"
    VOTE_RESULT = "vote_result"
    PLAYER_DEATH = "player_death"
    LOVER_DEATH = "lover_death"
    PLAYER_TRANSFORMED = "player_transformed"
    ROLE_REVEALED = "role_revealed"
    HUNTER_SHOT = "hunter_shot"
    SPECIAL = "special"
    GAME_OVER = "game_over"


class DeathCause(str, Enum):
    """Why a player died. Drives protections, reveal exceptions and role hooks."""

    WEREWOLF_KILL = "werewolf_kill"
    VOTE_RESULT = "vote_result"
    POISON = "poison"
    VAMPIRE_KILL = "vampire_kill"
    FAIRY_KILL = "fairy_kill"
    HUNTER_SHOT = "hunter_shot"
    LOVER_DEATH = "lover_death"
    TWIN_DEATH = "twin_death"
    LINKED_DEATH = "linked_death"
    TROUBLEMAKER_FIGHT = "troublemaker_fight"
    MASTER_KILL = "master_kill"
    SPECIAL = "special"


class Protection(str, Enum):
    """Protection kinds. Guard stops wolf kills; bless stops every stoppable night kill."""

    GUARD = "guard"
    BLESS = "bless"


class ChatChannel(str, Enum):
    """Chat channels a message can be posted to."""

    PUBLIC = "public"
    WOLVES = "wolves"
    LOVERS = "lovers"
    TWINS = "twins"
    GHOST = "ghost"


# Priority bands, lowest resolves first
PRIORITY_SETUP = 0
PRIORITY_CONTROL = 1
PRIORITY_PROTECT = 2
PRIORITY_INFO = 3
PRIORITY_RECRUIT = 4
PRIORITY_LETHAL = 5
PRIORITY_SAVE = 6
PRIORITY_RESURRECT = 7
PRIORITY_PREDICTION = 8

ACTION_PRIORITY: dict[ActionType, int] = {
    ActionType.CUPID_LOVE: PRIORITY_SETUP,
    ActionType.SHAPESHIFTER_SELECT: PRIORITY_SETUP,
    ActionType.VIRGINIA_WOOLF_LINK: PRIORITY_SETUP,
    ActionType.RIVER_SIREN_CHARM: PRIORITY_SETUP,
    ActionType.ELDER_LEADER_EXILE: PRIORITY_CONTROL,
    ActionType.SILENCER_SILENCE: PRIORITY_CONTROL,
    ActionType.PRIEST_BLESS: PRIORITY_PROTECT,
    ActionType.GUARDIAN_PROTECT: PRIORITY_PROTECT,
    ActionType.DOCTOR_HEAL: PRIORITY_PROTECT,
    ActionType.SEER_CHECK: PRIORITY_INFO,
    ActionType.WITCH_HUNT: PRIORITY_INFO,
    ActionType.FAIRY_FIND: PRIORITY_INFO,
    ActionType.LOOKOUT_SPY: PRIORITY_INFO,
    ActionType.CULT_RECRUIT: PRIORITY_RECRUIT,
    ActionType.FISHERMAN_CATCH: PRIORITY_RECRUIT,
    ActionType.WEREWOLF_KILL: PRIORITY_LETHAL,
    ActionType.SORCERESS_POISON: PRIORITY_LETHAL,
    ActionType.VAMPIRE_BITE: PRIORITY_LETHAL,
    ActionType.FAIRY_KILL: PRIORITY_LETHAL,
    ActionType.SORCERESS_SAVE: PRIORITY_SAVE,
    ActionType.RESURRECT: PRIORITY_RESURRECT,
    ActionType.BANSHEE_SCREAM: PRIORITY_PREDICTION,
}

# (min_targets, max_targets) per action. Werewolf kill allows 2 only on a revenge night.
ACTION_ARITY: dict[ActionType, tuple[int, int]] = {
    ActionType.CUPID_LOVE: (2, 2),
    ActionType.WEREWOLF_KILL: (1, 2),
}
DEFAULT_ARITY = (1, 1)

# Which role may submit which action
ROLE_ACTIONS: dict[Role, tuple[ActionType, ...]] = {
    Role.CUPID: (ActionType.CUPID_LOVE,),
    Role.SHAPESHIFTER: (ActionType.SHAPESHIFTER_SELECT,),
    Role.VIRGINIA_WOOLF: (ActionType.VIRGINIA_WOOLF_LINK,),
    Role.RIVER_SIREN: (ActionType.RIVER_SIREN_CHARM,),
    Role.ELDER_LEADER: (ActionType.ELDER_LEADER_EXILE,),
    Role.SILENCER: (ActionType.SILENCER_SILENCE,),
    Role.PRIEST: (ActionType.PRIEST_BLESS,),
    Role.GUARDIAN: (ActionType.GUARDIAN_PROTECT,),
    Role.DOCTOR: (ActionType.DOCTOR_HEAL,),
    Role.SEER: (ActionType.SEER_CHECK,),
    Role.SEER_APPRENTICE: (ActionType.SEER_CHECK,),
    Role.WITCH: (ActionType.WITCH_HUNT,),
    Role.SEEKER_FAIRY: (ActionType.FAIRY_FIND, ActionType.FAIRY_KILL),
    Role.LOOKOUT: (ActionType.LOOKOUT_SPY,),
    Role.CULT_LEADER: (ActionType.CULT_RECRUIT,),
    Role.FISHERMAN: (ActionType.FISHERMAN_CATCH,),
    Role.WEREWOLF: (ActionType.WEREWOLF_KILL,),
    Role.WOLF_CUB: (ActionType.WEREWOLF_KILL,),
    Role.SORCERESS: (ActionType.SORCERESS_POISON, ActionType.SORCERESS_SAVE),
    Role.VAMPIRE: (ActionType.VAMPIRE_BITE,),
    Role.RESURRECTOR_ANGEL: (ActionType.RESURRECT,),
    Role.BANSHEE: (ActionType.BANSHEE_SCREAM,),
}

# Actions only accepted on the first night
FIRST_NIGHT_ACTIONS = frozenset({
    ActionType.CUPID_LOVE,
    ActionType.SHAPESHIFTER_SELECT,
    ActionType.VIRGINIA_WOOLF_LINK,
    ActionType.RIVER_SIREN_CHARM,
})

# Roles a seer reads as a wolf
SEER_WOLF_ROLES = frozenset({Role.WEREWOLF, Role.WOLF_CUB, Role.CURSED, Role.LYCANTHROPE})

# Roles the fisherman dies catching
WOLF_ROLES = frozenset({Role.WEREWOLF, Role.WOLF_CUB})

# Roles assigned in pairs when enabled
PAIRED_ROLES = frozenset({Role.TWIN})

# Settings key that enables each special role; villager and werewolf are always on
ROLE_SETTING_KEYS: dict[Role, str] = {
    role: role.value for role in Role if role not in (Role.VILLAGER, Role.WEREWOLF)
}

# Player limits
MIN_PLAYERS = 3
MAX_PLAYERS = 32

# Default phase length when a deadline is set
PHASE_DURATION_SECONDS = 60

# One wolf per five players, at least one
PLAYERS_PER_WOLF = 5

BITE_KILL_THRESHOLD = 3
VAMPIRE_WIN_KILLS = 3
BANSHEE_WIN_POINTS = 2
GUARDIAN_SELF_PROTECT_LIMIT = 1

# Generic failure text shown to clients for rejected submissions
ACTION_REJECTED_MESSAGE = "This action could not be recorded."

# Default chat window size for narrator context
CHAT_WINDOW_SIZE = 20
