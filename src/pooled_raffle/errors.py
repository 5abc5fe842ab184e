from __future__ import annotations


class RaffleError(Exception):
    """Base class for every rejected raffle operation."""


class BadPayment(RaffleError):
    pass


class DuplicateEntrant(RaffleError):
    pass


class NotOccupant(RaffleError):
    pass


class AlreadyVacant(RaffleError):
    pass


class NotReady(RaffleError):
    pass


class NoEntrants(RaffleError):
    pass


class RandomnessUnavailable(RaffleError):
    pass


class TransferFailed(RaffleError):
    pass


class MintFailed(RaffleError):
    pass


class Unauthorized(RaffleError):
    pass


class InvalidAccount(RaffleError, ValueError):
    pass
