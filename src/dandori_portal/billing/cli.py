"""``flask billing ...`` commands for cron-driven runs of the billing batches."""

from __future__ import annotations

import json

import click
from flask import Flask
from flask.cli import AppGroup

from ..common.datetime_utils import to_optional_date
from ..common.serialization import to_jsonable
from ..container import Container


def register(app: Flask, container: Container) -> None:
    billing = AppGroup("billing", help="Tenant billing batch jobs.")
    service = container.billing_service

    @billing.command("generate-invoices")
    @click.option("--month", "billing_month", default=None, help="Billing month YYYY-MM (default: previous month).")
    @click.option("--dry-run", is_flag=True, help="Compute the invoices without saving them.")
    def generate_invoices(billing_month, dry_run):
        result = service.generate_monthly_invoices(billing_month, dry_run=dry_run)
        click.echo(json.dumps(to_jsonable(result), ensure_ascii=False, indent=2))

    @billing.command("check-overdue")
    @click.option("--today", default=None, help="Reference date YYYY-MM-DD (default: today).")
    def check_overdue(today):
        result = service.check_overdue(today=to_optional_date(today, "today"))
        click.echo(json.dumps(to_jsonable(result), ensure_ascii=False, indent=2))

    app.cli.add_command(billing)
