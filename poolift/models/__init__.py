"""Poolift Database Models."""

from poolift.models.user import User
from poolift.models.group import Family, Group
from poolift.models.birthday import Birthday, Idea
from poolift.models.party import Party, PartyCelebrant
from poolift.models.proposal import Proposal, ProposalItem, Vote
from poolift.models.gift import DirectGift, DirectGiftParticipant, Gift, Participant

__all__ = [
    "User",
    "Group",
    "Family",
    "Birthday",
    "Idea",
    "Party",
    "PartyCelebrant",
    "Proposal",
    "ProposalItem",
    "Vote",
    "Gift",
    "Participant",
    "DirectGift",
    "DirectGiftParticipant",
]
