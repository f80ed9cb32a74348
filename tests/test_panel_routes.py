import json
import tempfile
import unittest
from pathlib import Path
from zoneinfo import ZoneInfo

from fakes import FakeScreen, ScriptedConnection
from tmodweb.core.config import PanelSettings
from tmodweb.application_factory import create_app
from tmodweb.main import build_panel
from tmodweb.routes.panel_routes import serve_subscriber

AJAX_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


def _settings(tmp):
    root = Path(tmp)
    return PanelSettings(
        screen_name="tmod_session",
        bootstrap_script="./tmod_server.expect",
        hardcopy_path=root / "screen.txt",
        screen_command_timeout_seconds=1.0,
        monitor_interval_seconds=5.0,
        roster_response_delay_seconds=0.0,
        log_recent_limit=10,
        log_store_capacity=50,
        subscriber_queue_size=4,
        web_host="127.0.0.1",
        web_port=8080,
        display_tz=ZoneInfo("UTC"),
        log_dir=root / "logs",
        action_log_file=root / "logs" / "tmodweb-actions.log",
        secret_key="test",
    )


class PanelRoutesTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.screen = FakeScreen()
        self.app, self.state = build_panel(
            _settings(self._tmp.name),
            runner=self.screen,
            start_monitor_on_request=False,
        )
        self.app.config["TESTING"] = True
        self.client = self.app.test_client()

    def test_wrong_method_is_405(self):
        for path in ("/start", "/stop", "/command"):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path).status_code, 405)
        self.assertEqual(self.screen.launches, [])

    def test_start_ajax_ok_then_conflict(self):
        response = self.client.post("/start", headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"ok": True})
        self.assertIn("tmod_session", self.screen.sessions)

        response = self.client.post("/start", headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "already_running")
        self.assertEqual(len(self.screen.launches), 1)

    def test_form_post_redirects_with_see_other(self):
        response = self.client.post("/start")
        self.assertEqual(response.status_code, 303)
        self.assertTrue(response.headers["Location"].endswith("/"))

    def test_stop_when_not_running_is_plain_text_409(self):
        response = self.client.post("/stop")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_data(as_text=True), "Server not running")
        self.assertEqual(self.screen.stuffed, [])

    def test_launch_failure_is_500(self):
        self.screen.launch_returncode = 1
        response = self.client.post("/start", headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["error"], "start_failed")
        self.assertTrue(self.state.log_store.recent()[-1].message.startswith("Failed to start server"))

    def test_stop_send_failure_is_500(self):
        self.screen.sessions.add("tmod_session")
        self.screen.stuff_returncode = 1
        response = self.client.post("/stop", headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["error"], "command_failed")

    def test_command_route(self):
        response = self.client.post("/command", json={"command": "say hi"}, headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 409)

        self.screen.sessions.add("tmod_session")
        response = self.client.post("/command", data={"command": ""}, headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/command", json={"command": "say hi"}, headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.screen.stuffed, ["say hi\n"])

    def test_status_endpoint_shape(self):
        self.client.post("/start", headers=AJAX_HEADERS)
        payload = self.client.get("/status").get_json()
        self.assertEqual(payload["status"], "running")
        self.assertEqual(payload["players"], [])
        self.assertEqual(len(payload["logs"]), 1)
        self.assertIn("Server started at", payload["logs"][0])

    def test_index_renders(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("tmod_session", response.get_data(as_text=True))

    def test_push_channel_sends_status_then_cleans_up_on_disconnect(self):
        self.client.post("/start", headers=AJAX_HEADERS)
        connection = ScriptedConnection(frames=["hello", "players"])

        serve_subscriber(self.state, connection)

        self.assertTrue(connection.wait_for(lambda c: c.closed))
        self.assertEqual(len(connection.sent), 1)
        payload = json.loads(connection.sent[0])
        self.assertEqual(payload["status"], "running")
        self.assertIn("Server started at", payload["logs"][-1])
        # Inbound frames are consumed and never reach the game console.
        self.assertEqual(connection.received, ["hello", "players"])
        self.assertEqual(self.screen.stuffed, [])
        self.assertEqual(self.state.hub.subscriber_count(), 0)
        self.assertEqual(connection.close_calls, 1)
        log_text = self.state.settings.action_log_file.read_text(encoding="utf-8")
        self.assertIn("[tmodweb/ws-connect]", log_text)
        self.assertIn("[tmodweb/ws-disconnect]", log_text)

    def test_push_channel_initial_status_when_stopped(self):
        connection = ScriptedConnection()

        serve_subscriber(self.state, connection)

        self.assertEqual(
            [json.loads(message) for message in connection.sent],
            [{"status": "stopped", "players": [], "logs": []}],
        )
        self.assertEqual(self.state.hub.subscriber_count(), 0)

    def test_rejections_reach_diagnostics_log(self):
        self.client.post("/stop")
        log_text = self.state.settings.action_log_file.read_text(encoding="utf-8")
        self.assertIn("[tmodweb/stop]", log_text)
        self.assertIn("rejected: Server not running", log_text)

    def test_unhandled_error_is_logged_and_500(self):
        def explode():
            raise RuntimeError("kaboom")

        self.state.monitor.build_snapshot = explode
        response = self.client.get("/status", headers=AJAX_HEADERS)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["error"], "internal_error")
        log_text = self.state.settings.action_log_file.read_text(encoding="utf-8")
        self.assertIn("unhandled_exception path=/status", log_text)


class ApplicationFactoryTests(unittest.TestCase):
    def test_create_app_registers_panel_routes(self):
        with tempfile.TemporaryDirectory() as tmp:
            app = create_app(_settings(tmp), runner=FakeScreen(), start_monitor_on_request=False)
        rules = {rule.rule for rule in app.url_map.iter_rules()}
        self.assertTrue({"/", "/start", "/stop", "/command", "/status", "/ws"} <= rules)
        self.assertEqual(app.config["SECRET_KEY"], "test")


if __name__ == "__main__":
    unittest.main()
