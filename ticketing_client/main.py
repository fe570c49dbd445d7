"""
Ticketing Client entry point

Resumes a stored session, loads every collection of the caller and logs a summary.

    python -m ticketing_client.main
"""

import anyio

from ticketing_client.platform.config.di import container
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.query.event_dashboard_query import (
    organized_by,
    totals,
)
from ticketing_client.service.ticketing.domain.display_units import format_price


async def run() -> int:
    settings = container.config_service()
    Logger.base.info(
        f'🚀 [Client] {settings.PROJECT_NAME} {settings.VERSION} '
        f'against {settings.LEDGER_BASE_URL} ({settings.DEPLOY_TARGET})'
    )

    session_manager = container.session_manager()
    outcome = await session_manager.restore()
    if outcome.is_error:
        Logger.base.error(f'❌ [Client] {outcome.message}: {outcome.detail}')
        return 1

    if not session_manager.state_store.session.is_authenticated:
        Logger.base.info('[Client] No stored session. Log in to load your tickets.')
        return 0

    try:
        snapshot = container.state_store().collections
        summary = totals(snapshot)
        Logger.base.info(
            f'📊 [Client] {summary.total_events} events, {len(snapshot.active_events)} on sale, '
            f'{summary.tickets_sold} tickets sold, revenue {format_price(summary.revenue)}'
        )
        Logger.base.info(
            f'🎫 [Client] {session_manager.principal} holds {len(snapshot.tickets)} tickets '
            f'across {len(snapshot.purchases)} purchases and organizes '
            f'{len(organized_by(snapshot, session_manager.principal))} events'
        )
    finally:
        await session_manager.close()
        Logger.base.info('👋 [Client] Done')
    return 0


def main() -> None:
    raise SystemExit(anyio.run(run))


if __name__ == '__main__':
    main()
