import json
from pathlib import Path

import httpx
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from storefront.api.client import OPERATIONS


class Command(BaseCommand):
    help = "Download the backend OpenAPI document and report operations the client does not cover."

    def add_arguments(self, parser):
        parser.add_argument(
            "--url",
            default=None,
            help="OpenAPI document URL (default: <STOREFRONT_API_URL>/api/openapi.json)",
        )
        parser.add_argument("--output", default="openapi.json", help="Where to write the document")

    def handle(self, *args, **options):
        url = options["url"] or settings.STOREFRONT_API_URL.rstrip("/") + "/api/openapi.json"
        self.stdout.write(f"Fetching OpenAPI document from {url}...")

        try:
            with httpx.Client(
                timeout=settings.STOREFRONT_API_TIMEOUT,
                transport=getattr(settings, "STOREFRONT_API_TRANSPORT", None),
            ) as client:
                response = client.get(url)
            response.raise_for_status()
            document = response.json()
        except httpx.HTTPError as exc:
            raise CommandError(f"Failed to fetch: {exc}") from exc
        except ValueError as exc:
            raise CommandError(f"Response is not JSON: {exc}") from exc

        output = Path(options["output"])
        output.write_text(json.dumps(document, indent=2))
        self.stdout.write(self.style.SUCCESS(f"Saved to {output}"))

        remote = set()
        for operations in document.get("paths", {}).values():
            for operation in operations.values():
                if isinstance(operation, dict) and operation.get("operationId"):
                    remote.add(operation["operationId"])

        missing = sorted(remote - set(OPERATIONS))
        stale = sorted(set(OPERATIONS) - remote)
        for operation_id in missing:
            self.stdout.write(self.style.WARNING(f"Not implemented by the client: {operation_id}"))
        for operation_id in stale:
            self.stdout.write(self.style.WARNING(f"No longer offered by the backend: {operation_id}"))
        if not missing and not stale:
            self.stdout.write(self.style.SUCCESS("Client covers every backend operation."))
