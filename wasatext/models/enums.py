import enum


class ConversationType(str, enum.Enum):
    DIRECT = "direct"
    GROUP = "group"
