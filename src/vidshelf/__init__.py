# SPDX-FileCopyrightText: 2025-present DouglasMacKrell <d.mackrell@gmail.com>
#
# SPDX-License-Identifier: MIT

"""vidshelf - Movie and TV library organizer."""

from vidshelf.__about__ import __version__

__all__ = ["__version__"]
