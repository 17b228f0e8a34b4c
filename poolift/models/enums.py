"""Enumerations shared by models, schemas and services."""

from enum import Enum


class GroupType(str, Enum):
    CLASS = "class"
    FRIENDS = "friends"
    FAMILY = "family"
    WORK = "work"
    OTHER = "other"


class Occasion(str, Enum):
    BIRTHDAY = "birthday"
    FAREWELL = "farewell"
    WEDDING = "wedding"
    BIRTH = "birth"
    GRADUATION = "graduation"
    OTHER = "other"


class DirectGiftStatus(str, Enum):
    OPEN = "open"
    PURCHASED = "purchased"
    CANCELLED = "cancelled"


class PartyStatus(str, Enum):
    PENDING = "pending"
    VOTING = "voting"
    DECIDED = "decided"
    PURCHASED = "purchased"


class GiftState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    PURCHASED = "purchased"
