"""WebSocket consumer for the custody scanner."""

import asyncio
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from django.conf import settings
from django.core.exceptions import ValidationError

from inventory.models import TeamMember
from inventory.scanner.blockers import evaluate_blockers
from inventory.scanner.session import ScanSession
from inventory.services.custody import assign_custody
from inventory.services.resolve import resolve_scan

logger = logging.getLogger(__name__)


def _is_list_of(value, types):
    return isinstance(value, list) and all(
        isinstance(v, types) and not isinstance(v, bool) for v in value
    )


class ScannerConsumer(AsyncJsonWebsocketConsumer):
    """Live scan session for one browser tab.

    The connection owns its ``ScanSession``. Each scanned code gets its
    own lookup task; all session changes happen on the event loop, and
    every change is followed by a fresh ``state`` message with the
    current blockers.
    """

    async def connect(self):
        self.session = ScanSession()
        self._lookups = {}

        if getattr(settings, "SECURE_WEBSOCKET", True):
            if self.scope.get("scheme", "") == "ws":
                await self.close()
                return

        self.user = self.scope.get("user")
        if self.user is None or not self.user.is_authenticated:
            await self.close()
            return

        await self.accept()
        await self.send_state()

    async def disconnect(self, close_code):
        for task in list(self._lookups.values()):
            task.cancel()
        self._lookups.clear()

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self.send_error(
                "invalid_message", "Messages must be JSON objects"
            )
            return
        msg_type = content.get("type")
        handler = self.HANDLERS.get(msg_type)
        if handler is None:
            await self.send_error(
                "invalid_message", f"Unrecognised message type: {msg_type}"
            )
            return
        await handler(self, content)

    # -----------------------------------------------------------------
    # Outgoing messages
    # -----------------------------------------------------------------

    def state(self):
        report = evaluate_blockers(self.session)
        return {
            "type": "state",
            "items": self.session.to_dict(),
            "order": list(self.session),
            "pending": self.session.pending_ids(),
            "asset_ids": self.session.asset_ids(),
            "kit_ids": self.session.kit_ids(),
            "blockers": report.to_dict(),
        }

    async def send_state(self):
        await self.send_json(self.state())

    async def send_error(self, code, message):
        await self.send_json(
            {"type": "error", "code": code, "message": message}
        )

    # -----------------------------------------------------------------
    # Scanning
    # -----------------------------------------------------------------

    async def handle_scan(self, content):
        code = str(content.get("code", "")).strip()
        if not code:
            await self.send_error("invalid_message", "code is required")
            return
        item, created = self.session.add(code)
        await self.send_state()
        if created:
            self._lookups[code] = asyncio.ensure_future(
                self._lookup(code, item.token)
            )

    async def _lookup(self, scan_id, token):
        try:
            kind, payload, error = await database_sync_to_async(
                resolve_scan
            )(scan_id, self.user)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Lookup of scanned code %s failed", scan_id)
            kind, payload, error = None, None, "Lookup failed."
        finally:
            if self._lookups.get(scan_id) is asyncio.current_task():
                del self._lookups[scan_id]

        if error:
            applied = self.session.fail(scan_id, error, token=token)
        else:
            applied = self.session.settle(scan_id, kind, payload, token=token)
        if applied:
            await self.send_state()

    def _cancel_lookup(self, scan_id):
        task = self._lookups.pop(scan_id, None)
        if task is not None:
            task.cancel()

    # -----------------------------------------------------------------
    # Removal and blocker resolution
    # -----------------------------------------------------------------

    def _forget_removed(self):
        for scan_id in list(self._lookups):
            if scan_id not in self.session:
                self._cancel_lookup(scan_id)

    async def handle_remove(self, content):
        scan_id = content.get("scan_id")
        if not isinstance(scan_id, str):
            await self.send_error(
                "invalid_message", "scan_id must be a string"
            )
            return
        self.session.remove(scan_id)
        self._forget_removed()
        await self.send_state()

    async def handle_remove_many(self, content):
        scan_ids = content.get("scan_ids")
        if not _is_list_of(scan_ids, str):
            await self.send_error(
                "invalid_message", "scan_ids must be a list of strings"
            )
            return
        self.session.remove_many(scan_ids)
        self._forget_removed()
        await self.send_state()

    async def handle_remove_assets(self, content):
        asset_ids = content.get("asset_ids")
        if not _is_list_of(asset_ids, (str, int)):
            await self.send_error(
                "invalid_message", "asset_ids must be a list of ids"
            )
            return
        self.session.remove_by_asset_id(asset_ids)
        self._forget_removed()
        await self.send_state()

    async def handle_clear(self, content):
        self.session.clear()
        self._forget_removed()
        await self.send_state()

    async def handle_resolve_blocker(self, content):
        key = content.get("key")
        blocker = evaluate_blockers(self.session).get(key)
        if blocker is None:
            await self.send_error("unknown_blocker", f"No blocker '{key}'")
            return
        blocker.resolve(self.session)
        await self.send_state()

    async def handle_resolve_all(self, content):
        evaluate_blockers(self.session).resolve_all(self.session)
        await self.send_state()

    # -----------------------------------------------------------------
    # Custody assignment
    # -----------------------------------------------------------------

    async def handle_submit(self, content):
        if self.session.pending_ids():
            await self.send_error(
                "pending", "Wait for all scanned codes to load."
            )
            return
        if evaluate_blockers(self.session).has_blockers:
            await self.send_error(
                "blocked", "Resolve all issues before assigning custody."
            )
            return

        @database_sync_to_async
        def submit(custodian_id, asset_ids, kit_ids):
            custodian = None
            if str(custodian_id).isdigit():
                custodian = (
                    TeamMember.objects.active().filter(pk=custodian_id).first()
                )
            if custodian is None:
                raise ValidationError("Please select a custodian")
            return assign_custody(
                asset_ids, custodian, self.user, kit_ids=kit_ids
            )

        try:
            custodies = await submit(
                content.get("custodian"),
                self.session.asset_ids(),
                self.session.kit_ids(),
            )
        except ValidationError as exc:
            await self.send_error("invalid", " ".join(exc.messages))
            return

        self.session.clear()
        await self.send_json(
            {"type": "custody_assigned", "count": len(custodies)}
        )
        await self.send_state()

    HANDLERS = {
        "scan": handle_scan,
        "remove": handle_remove,
        "remove_many": handle_remove_many,
        "remove_assets": handle_remove_assets,
        "clear": handle_clear,
        "resolve_blocker": handle_resolve_blocker,
        "resolve_all": handle_resolve_all,
        "submit": handle_submit,
    }
