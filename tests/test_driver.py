import os
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests
from selenium.common.exceptions import WebDriverException

from webpilot.browser import driver as driver_module
from webpilot.browser.capabilities import Browser, CapabilityDescriptor, Platform
from webpilot.browser.driver import (DriverBinarySelector, chrome_options,
                                     create_local_session,
                                     create_remote_session, firefox_options,
                                     open_session, remote_options,
                                     session_name)
from webpilot.cli.config import WebDriverConfig
from webpilot.errors import ConfigError, LaunchError


@pytest.fixture
def chromedriver_base(tmp_path):
    """A bin directory holding chromedriver binaries for every OS."""
    for suffix in ("-linux64", "-mac", "-win.exe"):
        (tmp_path / f"chromedriver{suffix}").write_text("")
    return str(tmp_path / "chromedriver")


class TestDriverBinarySelector:
    @pytest.mark.parametrize("identifier, suffix", [
        ("Linux 10", "chromedriver-linux64"),
        ("Mac OS X", "chromedriver-mac"),
        ("Windows 7", "chromedriver-win.exe"),
    ])
    def test_selects_os_binary(self, chromedriver_base, identifier, suffix):
        selector = DriverBinarySelector()
        assert selector.select(chromedriver_base, identifier).endswith(suffix)

    def test_selects_once_until_reset(self, chromedriver_base):
        selector = DriverBinarySelector()
        first = selector.select(chromedriver_base, "Mac OS X")
        assert selector.select(chromedriver_base, "Linux 10") == first
        assert selector.selected == first

        selector.reset()
        assert selector.selected is None
        assert selector.select(chromedriver_base, "Linux 10").endswith("chromedriver-linux64")

    def test_missing_binary(self, tmp_path):
        selector = DriverBinarySelector()
        with pytest.raises(LaunchError, match="does not match an existing file"):
            selector.select(str(tmp_path / "chromedriver"), "Linux 10")
        assert selector.selected is None

    def test_unknown_host(self, chromedriver_base):
        with pytest.raises(LaunchError):
            DriverBinarySelector().select(chromedriver_base, "Plan 9")

    def test_concurrent_first_selection_runs_once(self, chromedriver_base):
        selector = DriverBinarySelector()
        real_isfile = os.path.isfile
        checks = []

        def counting_isfile(path):
            checks.append(path)
            return real_isfile(path)

        barrier = threading.Barrier(8)
        results = []

        def select():
            barrier.wait()
            results.append(selector.select(chromedriver_base, "Linux 10"))

        with patch.object(driver_module.os.path, "isfile", side_effect=counting_isfile):
            threads = [threading.Thread(target=select) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert len(results) == 8
        assert len(set(results)) == 1
        assert results[0].endswith("chromedriver-linux64")
        assert len(checks) == 1


class TestOptions:
    def test_chrome_options(self):
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, "120", True,
                                          binary_path="/opt/chrome",
                                          extra_preferences={"download.prompt_for_download": False})
        options = chrome_options(descriptor)
        assert options.binary_location == "/opt/chrome"
        assert options.experimental_options["prefs"] == {"download.prompt_for_download": False}
        assert "--headless=new" not in options.arguments

    def test_headless_chrome(self):
        descriptor = CapabilityDescriptor(Browser.HEADLESS, Platform.LINUX, None, True)
        assert "--headless=new" in chrome_options(descriptor).arguments

    def test_firefox_download_preferences(self):
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.MAC, "17", True)
        options = firefox_options(descriptor, WebDriverConfig({"webdriver.download.directory": "Downloads"}))
        prefs = options.preferences
        assert prefs["browser.download.dir"] == "Downloads"
        assert prefs["browser.download.folderList"] == 0
        assert prefs["browser.download.manager.showWhenStarting"] is False

    def test_remote_capabilities(self):
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.XP, "17", False)
        options = remote_options(descriptor, WebDriverConfig(), 1700000000)
        caps = options.to_capabilities()
        assert caps["browserName"] == "firefox"
        assert caps["browserVersion"] == "17"
        assert caps["platformName"] == "XP"
        assert caps["se:javascriptEnabled"] is True
        assert caps["se:name"] == "FIREFOX-17 on XP time 1700000000"

    def test_session_name_without_version(self):
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, False)
        assert session_name(descriptor, 5) == "CHROME-default on LINUX time 5"


class TestCreateLocalSession:
    @patch.object(driver_module, "webdriver")
    def test_chrome_uses_selected_driver(self, mock_webdriver, chromedriver_base):
        mock_driver = MagicMock()
        mock_webdriver.Chrome.return_value = mock_driver
        config = WebDriverConfig({"webdriver.chrome.driver": chromedriver_base, "webdriver.wait": "4"})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, True)

        session = create_local_session(descriptor, config, DriverBinarySelector(), "Linux 10")

        service = mock_webdriver.Chrome.call_args.kwargs["service"]
        assert service.path.endswith("chromedriver-linux64")
        assert session.driver is mock_driver
        assert session.is_local is True
        assert session.grid_url is None
        mock_driver.implicitly_wait.assert_called_once_with(4)
        assert session.implicit_wait == 4

    @patch.object(driver_module, "ChromeDriverManager")
    @patch.object(driver_module, "webdriver")
    def test_chrome_without_configured_driver_installs_one(self, mock_webdriver, mock_manager, tmp_path):
        installed = tmp_path / "chromedriver"
        installed.write_text("")
        mock_manager.return_value.install.return_value = str(installed)
        descriptor = CapabilityDescriptor(Browser.HEADLESS, Platform.LINUX, None, True)

        create_local_session(descriptor, WebDriverConfig(), DriverBinarySelector(), "Linux 10")

        mock_manager.return_value.install.assert_called_once()
        assert mock_webdriver.Chrome.call_args.kwargs["service"].path == str(installed)

    @patch.object(driver_module, "webdriver")
    def test_firefox(self, mock_webdriver):
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, None, True)
        session = create_local_session(descriptor, WebDriverConfig())
        mock_webdriver.Firefox.assert_called_once()
        assert session.driver is mock_webdriver.Firefox.return_value

    @patch.object(driver_module, "webdriver")
    def test_missing_browser_binary(self, mock_webdriver, tmp_path):
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, "17", True,
                                          binary_path=str(tmp_path / "firefox"))
        with pytest.raises(LaunchError, match="browser binary path"):
            create_local_session(descriptor, WebDriverConfig())
        mock_webdriver.Firefox.assert_not_called()

    @patch.object(driver_module, "webdriver")
    def test_backend_failure_is_launch_error(self, mock_webdriver):
        from selenium.common.exceptions import SessionNotCreatedException
        mock_webdriver.Firefox.side_effect = SessionNotCreatedException("no firefox")
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, None, True)
        with pytest.raises(LaunchError, match="no firefox"):
            create_local_session(descriptor, WebDriverConfig())

    @patch.object(driver_module, "ChromeDriverManager")
    @patch.object(driver_module, "webdriver")
    def test_driver_download_failure_is_launch_error(self, mock_webdriver, mock_manager):
        mock_manager.return_value.install.side_effect = requests.ConnectionError("no network")
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, True)

        with pytest.raises(LaunchError, match="no network"):
            create_local_session(descriptor, WebDriverConfig(), DriverBinarySelector(), "Linux 10")
        mock_webdriver.Chrome.assert_not_called()

    @patch.object(driver_module, "webdriver")
    def test_quits_driver_when_implicit_wait_fails(self, mock_webdriver):
        mock_webdriver.Firefox.return_value.implicitly_wait.side_effect = WebDriverException("rejected")
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, None, True)

        with pytest.raises(WebDriverException, match="rejected"):
            create_local_session(descriptor, WebDriverConfig())
        mock_webdriver.Firefox.return_value.quit.assert_called_once_with()

    @patch.object(driver_module, "webdriver")
    def test_quits_driver_when_wait_is_invalid(self, mock_webdriver):
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, None, True)

        with pytest.raises(ConfigError, match="webdriver.wait"):
            create_local_session(descriptor, WebDriverConfig({"webdriver.wait": "soon"}))
        mock_webdriver.Firefox.return_value.quit.assert_called_once_with()

    @patch.object(driver_module, "webdriver")
    def test_invalid_settle_config_fails_before_launch(self, mock_webdriver):
        config = WebDriverConfig({"webdriver.async.enabled": "true", "webdriver.async.timeout": "0"})
        descriptor = CapabilityDescriptor(Browser.FIREFOX, Platform.LINUX, None, True)

        with pytest.raises(ConfigError, match="webdriver.async.timeout"):
            create_local_session(descriptor, config)
        mock_webdriver.Firefox.assert_not_called()


class TestCreateRemoteSession:
    @patch.object(driver_module, "webdriver")
    def test_opens_session_on_grid(self, mock_webdriver):
        config = WebDriverConfig({"webdriver.grid.url": "http://10.0.0.5:4444/wd/hub", "webdriver.wait": "3"})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.WINDOWS, "120", False)

        session = create_remote_session(descriptor, config, clock=lambda: 42.9)

        kwargs = mock_webdriver.Remote.call_args.kwargs
        assert kwargs["command_executor"] == "http://10.0.0.5:4444/wd/hub"
        assert kwargs["options"].to_capabilities()["se:name"] == "CHROME-120 on WINDOWS time 42"
        assert session.is_local is False
        assert session.grid_url == "http://10.0.0.5:4444/wd/hub"
        mock_webdriver.Remote.return_value.implicitly_wait.assert_called_once_with(3)

    @pytest.mark.parametrize("grid_url", [None, "", "   "])
    @patch.object(driver_module, "webdriver")
    def test_requires_grid_url(self, mock_webdriver, grid_url):
        config = WebDriverConfig({"webdriver.grid.url": grid_url})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, False)
        with pytest.raises(LaunchError, match="webdriver.grid.url"):
            create_remote_session(descriptor, config)
        mock_webdriver.Remote.assert_not_called()

    @patch.object(driver_module, "webdriver")
    def test_grid_refusal_is_launch_error(self, mock_webdriver):
        mock_webdriver.Remote.side_effect = ConnectionError("refused")
        config = WebDriverConfig({"webdriver.grid.url": "http://grid:4444/wd/hub"})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, False)
        with pytest.raises(LaunchError, match="refused"):
            create_remote_session(descriptor, config)

    @patch.object(driver_module, "webdriver")
    def test_quits_grid_session_when_implicit_wait_fails(self, mock_webdriver):
        mock_webdriver.Remote.return_value.implicitly_wait.side_effect = WebDriverException("rejected")
        config = WebDriverConfig({"webdriver.grid.url": "http://grid:4444/wd/hub"})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, False)

        with pytest.raises(WebDriverException):
            create_remote_session(descriptor, config)
        mock_webdriver.Remote.return_value.quit.assert_called_once_with()

    @patch.object(driver_module, "webdriver")
    def test_invalid_settle_config_fails_before_launch(self, mock_webdriver):
        config = WebDriverConfig({"webdriver.grid.url": "http://grid:4444/wd/hub",
                                  "webdriver.async.enabled": "true",
                                  "webdriver.async.sleep.interval": "0"})
        descriptor = CapabilityDescriptor(Browser.CHROME, Platform.LINUX, None, False)

        with pytest.raises(ConfigError, match="webdriver.async.sleep.interval"):
            create_remote_session(descriptor, config)
        mock_webdriver.Remote.assert_not_called()


class TestOpenSession:
    @patch.object(driver_module, "create_remote_session")
    @patch.object(driver_module, "create_local_session")
    def test_dispatches_local(self, mock_local, mock_remote):
        open_session(WebDriverConfig({"webdriver.platform": "local"}), "Linux 5.10")
        mock_local.assert_called_once()
        mock_remote.assert_not_called()
        descriptor = mock_local.call_args.args[0]
        assert descriptor.platform is Platform.LINUX

    @patch.object(driver_module, "create_remote_session")
    @patch.object(driver_module, "create_local_session")
    def test_dispatches_remote(self, mock_local, mock_remote):
        open_session(WebDriverConfig({"webdriver.platform": "vista"}))
        mock_remote.assert_called_once()
        mock_local.assert_not_called()

    @patch.object(driver_module, "create_local_session")
    def test_invalid_settle_config_fails_before_launch(self, mock_local):
        config = WebDriverConfig({"webdriver.async.enabled": "true", "webdriver.async.timeout": "0"})
        with pytest.raises(ConfigError):
            open_session(config, "Linux 5.10")
        mock_local.assert_not_called()

    @patch.object(driver_module, "create_local_session")
    def test_unsupported_browser_fails_before_launch(self, mock_local):
        with pytest.raises(ConfigError):
            open_session(WebDriverConfig({"webdriver.browser": "opera"}), "Linux 5.10")
        mock_local.assert_not_called()
