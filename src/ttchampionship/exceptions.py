"""Exceptions for use in Table Tennis Championship"""

# Table Tennis Championship
# Copyright (C) 2025  Table Tennis Championship developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.


# ========== Base Application Exception ==========


class TTChampionshipException(Exception):
    """Base exception for all Table Tennis Championship errors.

    Rule violations found by the validators are returned as values, never
    raised. Exceptions are reserved for misuse of the API: unknown ids,
    out-of-order lifecycle moves, illegal results submitted for recording.
    """

    pass


# ========== Tournament Exceptions ==========


class TournamentException(TTChampionshipException):
    """Base exception for championship-related errors."""

    pass


class TournamentStateException(TournamentException):
    """Raised when the championship is in an invalid state for the requested operation."""

    pass


# ========== Athlete Exceptions ==========


class AthleteException(TTChampionshipException):
    """Base exception for athlete-related errors."""

    pass


class AthleteNotFoundException(AthleteException):
    """Raised when a requested athlete cannot be found."""

    pass


class DuplicateAthleteException(AthleteException):
    """Raised when attempting to add an athlete that already exists."""

    pass


# ========== Result Exceptions ==========


class ResultException(TTChampionshipException):
    """Base exception for result recording errors."""

    pass


class InvalidResultException(ResultException):
    """Raised when a result is invalid (e.g., a set breaks the deuce rule)."""

    pass


class ResultNotFoundException(ResultException):
    """Raised when the match a result refers to cannot be found."""

    pass


# ========== Validation Exceptions ==========


class ValidationException(TTChampionshipException):
    """Base exception for validation errors."""

    pass


class NameValidationException(ValidationException):
    """Raised when an athlete or championship name is invalid."""

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(TTChampionshipException):
    """Base exception for configuration errors."""

    pass


class InvalidConfigurationException(ConfigurationException):
    """Raised when configuration data is invalid."""

    pass


class UnknownRulesException(ConfigurationException):
    """Raised when a federation rule set code is not registered."""

    pass
