"""Reply text sent to senders who still need to pair."""


def build_pairing_reply(channel: str, id_line: str, code: str) -> str:
    return "\n".join(
        [
            "chatgate: access not configured.",
            "",
            id_line,
            "",
            f"Pairing code: {code}",
            "",
            "Ask the bot owner to approve with:",
            f"chatgate pairing approve {channel} <code>",
        ]
    )
