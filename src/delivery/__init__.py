# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Delivery Package

Everything between the course engine and the chat transport: the
notification sink, the connection state machine, and the sticker maker.
"""

from .connection import ConnectionLost, ConnectionState, ConnectionSupervisor
from .sink import BroadcastReport, DeliveryError, DiscordSink, NotificationSink, chunk_message
from .stickers import StickerError, build_sticker, is_supported_image, make_sticker

__all__ = [
    "ConnectionLost",
    "ConnectionState",
    "ConnectionSupervisor",
    "BroadcastReport",
    "DeliveryError",
    "DiscordSink",
    "NotificationSink",
    "chunk_message",
    "StickerError",
    "build_sticker",
    "is_supported_image",
    "make_sticker",
]
