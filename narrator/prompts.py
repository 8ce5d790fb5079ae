"""Prompt and context building for narrator chat."""

from typing import Any

from pueblo.rules import ChatChannel


RULES_SUMMARY = """
You are playing El Pueblo, a werewolf-style social deduction game. Villagers try to find the werewolves; the wolves hunt at night.
- At night: werewolves pick a victim. Protectors (doctor, guardian, priest) may save them. The seer learns whether a player is a wolf. Other roles have their own secret powers.
- By day: everyone talks, then votes. The player with the most votes is lynched. Ties go to a second vote, then to a jury of the dead.
- Village wins when no wolves remain. Wolves win when they equal or outnumber everyone else. Some neutral roles win alone.
- Never state your secret role outright in public chat.
"""

CHAT_INSTRUCTIONS_TEMPLATE = (
    "You are {player_name}, secretly a {role_name}. You are writing in the {channel} chat. "
    "Something just happened: \"{trigger}\". "
    "Decide whether to say something. If you do, write one short believable message and set should_send to true."
)

CHANNEL_HINTS = {
    ChatChannel.PUBLIC: "Everyone alive reads this. Wolves must deceive; villagers look for suspects.",
    ChatChannel.WOLVES: "Only your fellow wolves read this. Coordinate openly about tonight's victim.",
    ChatChannel.LOVERS: "Only your lover reads this. You win together if you are the last two alive.",
    ChatChannel.TWINS: "Only your twin reads this. You can trust them completely.",
    ChatChannel.GHOST: "Only the dead read this. You may speak freely about what you know.",
}

ROLE_HINTS = {
    "villager": "You are confused but trying to figure things out. Defend yourself if accused.",
    "werewolf": "Deny any accusation and shift blame onto an innocent player. Act like a concerned villager.",
    "wolf_cub": "Deny any accusation and shift blame onto an innocent player. Act like a concerned villager.",
    "seer": "You may hint at your findings without revealing your role too early.",
    "doctor": "Be secretive. You might remark how lucky someone was to survive the night.",
}


def get_default_prompts() -> dict[str, str]:
    """Return default prompt texts for GET /settings/prompts."""
    return {
        "rules_summary": RULES_SUMMARY.strip(),
        "chat_instructions_template": CHAT_INSTRUCTIONS_TEMPLATE,
    }


def build_perspective_context(perspective: dict[str, Any]) -> str:
    """Build user-message context from views.perspective(): round, players, recent events and chat."""
    me = perspective["me"] or {}
    players = perspective["players"]
    lines = [
        f"Round {perspective['round']}. Phase: {perspective['phase']}.",
        f"You are {me.get('name')} ({'alive' if me.get('is_alive') else 'dead'}).",
        f"Alive players: {', '.join(p['name'] for p in players if p['is_alive'])}.",
    ]
    dead = [f"{p['name']} ({p['role'] or 'unknown'})" for p in players if not p["is_alive"]]
    if dead:
        lines.append(f"Dead players: {', '.join(dead)}.")
    if perspective["events"]:
        lines.append("Recent events:")
        lines.extend(f"  - {message}" for message in perspective["events"])
    if perspective["chat"]:
        lines.append("Recent chat:")
        lines.extend(f"  {line}" for line in perspective["chat"])
    return "\n".join(lines)


def chat_instructions(
    player_name: str,
    role_name: str,
    trigger: str,
    channel: ChatChannel,
    template: str | None = None,
) -> str:
    """Instructions for one chat proposal, with role and channel hints."""
    t = template or CHAT_INSTRUCTIONS_TEMPLATE
    parts = [
        t.format(player_name=player_name, role_name=role_name, trigger=trigger, channel=channel.value),
        CHANNEL_HINTS[channel],
    ]
    if role_name in ROLE_HINTS:
        parts.append(ROLE_HINTS[role_name])
    return " ".join(parts)
