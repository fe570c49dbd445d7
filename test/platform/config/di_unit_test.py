import pytest

from ticketing_client.platform.config.di import Container


@pytest.mark.unit
class TestContainer:
    def test_orchestrators_share_one_state_store(self):
        container = Container()

        session_manager = container.session_manager()
        purchase = container.purchase_tickets_use_case()
        stats = container.load_event_stats_use_case()

        assert session_manager.state_store is purchase.state_store is stats.state_store
        assert purchase.synchronizer.state_store is session_manager.state_store
        assert purchase.notifier is session_manager.notifier

    def test_settings_flow_into_collaborators(self):
        container = Container()
        settings = container.config_service()

        session_manager = container.session_manager()

        assert session_manager.identity_provider_url == settings.IDENTITY_PROVIDER_URL
        assert container.auth_provider().session_file == settings.SESSION_FILE
        assert container.channel_factory().settings is settings

    def test_command_singletons_keep_their_busy_guard(self):
        container = Container()

        create = container.create_event_use_case()
        purchase = container.purchase_tickets_use_case()

        assert create is container.create_event_use_case()
        assert create.guard is not purchase.guard
