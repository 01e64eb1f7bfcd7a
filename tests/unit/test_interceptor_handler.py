import os
import sys
import json
import shutil
import pytest
from unittest.mock import patch, MagicMock

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

# Create mock logger
mock_logger = MagicMock()

@pytest.fixture(autouse=True)
def mock_logger_fixture():
    """Mock logger for all tests."""
    mock_logger.reset_mock()
    with patch('oci_interceptor.interceptor_handler.logger', mock_logger):
        yield mock_logger

from oci_interceptor.interceptor_handler import InterceptorConfig, InterceptorHandler
from oci_interceptor.spec_handler.env_vars import EnvVarOverride
from oci_interceptor.spec_handler.spec_store import SpecStore
from oci_interceptor.utils.constants import SIGNAL_EXIT_CODE, RUNTIME_CALLS_FILENAME
from oci_interceptor.utils.errors import (
    SpecParseError, SpecWriteError, SubprocessLaunchError, SubprocessWaitError
)

SAMPLE_BUNDLE = os.path.join(os.path.dirname(__file__), '..', 'resource', 'sample_bundle')


@pytest.fixture
def bundle_dir(tmp_path):
    bundle = tmp_path / 'bundle'
    bundle.mkdir()
    shutil.copy(os.path.join(SAMPLE_BUNDLE, 'config.json'), bundle / 'config.json')
    return str(bundle)

@pytest.fixture
def mock_popen():
    with patch('oci_interceptor.interceptor_handler.subprocess.Popen') as mock:
        mock.return_value.wait.return_value = 0
        mock.return_value.pid = 4242
        yield mock

def read_config(bundle_dir):
    with open(os.path.join(bundle_dir, 'config.json')) as f:
        return json.load(f)

def mount_options(config, destination):
    for mount in config['mounts']:
        if mount['destination'] == destination:
            return mount.get('options')
    return None

# Forwarding
def test_non_create_command_passes_through(mock_popen):
    handler = InterceptorHandler(InterceptorConfig(runtime_path='/usr/bin/runc', readonly_networking_mounts=True))
    with patch.object(handler.spec_store, 'load') as mock_load:
        result = handler.intercept_command(['delete', '--force', 'container1'])
    assert result == 0
    mock_load.assert_not_called()
    mock_popen.assert_called_once_with(['/usr/bin/runc', 'delete', '--force', 'container1'])

def test_exit_code_propagated(mock_popen):
    mock_popen.return_value.wait.return_value = 137
    handler = InterceptorHandler(InterceptorConfig())
    assert handler.intercept_command(['kill', 'container1', 'KILL']) == 137

def test_signal_termination_returns_sentinel(mock_popen):
    mock_popen.return_value.wait.return_value = -9
    handler = InterceptorHandler(InterceptorConfig())
    assert handler.intercept_command(['state', 'container1']) == SIGNAL_EXIT_CODE

def test_launch_failure(mock_popen):
    mock_popen.side_effect = FileNotFoundError("No such file or directory: 'runc'")
    handler = InterceptorHandler(InterceptorConfig())
    with pytest.raises(SubprocessLaunchError):
        handler.intercept_command(['state', 'container1'])

def test_wait_failure(mock_popen):
    mock_popen.return_value.wait.side_effect = ChildProcessError("No child processes")
    handler = InterceptorHandler(InterceptorConfig())
    with pytest.raises(SubprocessWaitError):
        handler.intercept_command(['state', 'container1'])

def test_real_runtime_exit_code():
    """Run the Python interpreter as the runtime to check real exit codes."""
    handler = InterceptorHandler(InterceptorConfig(runtime_path=sys.executable))
    assert handler.intercept_command(['-c', 'import sys; sys.exit(3)']) == 3

def test_real_runtime_killed_by_signal():
    handler = InterceptorHandler(InterceptorConfig(runtime_path=sys.executable))
    code = 'import os, signal; os.kill(os.getpid(), signal.SIGKILL)'
    assert handler.intercept_command(['-c', code]) == SIGNAL_EXIT_CODE

# Create handling
def test_create_applies_mount_policy(mock_popen, bundle_dir):
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True))
    args = ['--root', '/run/runc', 'create', '--bundle', bundle_dir, 'container1']
    assert handler.intercept_command(args) == 0

    config = read_config(bundle_dir)
    assert mount_options(config, '/etc/hosts') == ['rbind', 'rprivate', 'ro']
    assert mount_options(config, '/etc/hostname') == ['rbind', 'rprivate', 'ro']
    assert mount_options(config, '/etc/resolv.conf') == ['rbind', 'rprivate', 'ro']
    assert mount_options(config, '/proc') == ['nosuid', 'noexec', 'nodev']
    mock_popen.assert_called_once_with(['runc'] + args)

def test_create_applies_env_overrides(mock_popen, bundle_dir):
    overrides = [EnvVarOverride('LANG', 'en_US.UTF-8', True), EnvVarOverride('TZ', 'UTC', False)]
    handler = InterceptorHandler(InterceptorConfig(env_overrides=overrides))
    handler.intercept_command(['create', '-b', bundle_dir, 'container1'])

    env = read_config(bundle_dir)['process']['env']
    assert env[1:] == ['HOSTNAME=6f1c2a3b4d5e', 'LANG=en_US.UTF-8', 'TZ=UTC']

def test_create_without_policies_does_not_save(mock_popen, bundle_dir):
    handler = InterceptorHandler(InterceptorConfig())
    with patch.object(handler.spec_store, 'save') as mock_save:
        handler.intercept_command(['create', '--bundle=' + bundle_dir, 'container1'])
    mock_save.assert_not_called()
    mock_popen.assert_called_once()

def test_create_without_change_does_not_save(mock_popen, tmp_path):
    config = {'ociVersion': '1.0.2', 'mounts': [{'destination': '/etc/hosts', 'options': ['ro']}]}
    with open(tmp_path / 'config.json', 'w') as f:
        json.dump(config, f)
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True))
    with patch.object(handler.spec_store, 'save') as mock_save:
        handler.intercept_command(['create', '--bundle', str(tmp_path), 'container1'])
    mock_save.assert_not_called()

def test_create_with_unreadable_spec_does_not_forward(mock_popen, tmp_path):
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True))
    with pytest.raises(SpecParseError):
        handler.intercept_command(['create', '--bundle', str(tmp_path / 'missing'), 'container1'])
    mock_popen.assert_not_called()

def test_create_with_save_failure_does_not_forward(mock_popen, bundle_dir):
    spec_store = SpecStore()
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True), spec_store=spec_store)
    with patch.object(spec_store, 'save', side_effect=SpecWriteError("disk full")):
        with pytest.raises(SpecWriteError):
            handler.intercept_command(['create', '--bundle', bundle_dir, 'container1'])
    mock_popen.assert_not_called()

# Debug output
def test_debug_output_written(mock_popen, bundle_dir, tmp_path):
    debug_dir = tmp_path / 'debug'
    config = InterceptorConfig(readonly_networking_mounts=True, write_debug_output=True,
                               debug_output_dir=str(debug_dir))
    handler = InterceptorHandler(config)
    handler.intercept_command(['create', '--bundle', bundle_dir, 'container1'])

    with open(debug_dir / '6f1c2a3b4d5e_original.json') as f:
        original = json.load(f)
    with open(debug_dir / '6f1c2a3b4d5e_modified.json') as f:
        modified = json.load(f)
    assert mount_options(original, '/etc/hostname') == ['rbind', 'rprivate']
    assert mount_options(modified, '/etc/hostname') == ['rbind', 'rprivate', 'ro']
    with open(debug_dir / RUNTIME_CALLS_FILENAME) as f:
        assert f.read() == f"runc create --bundle {bundle_dir} container1\n"

def test_debug_output_unknown_hostname(mock_popen, tmp_path):
    bundle = tmp_path / 'bundle'
    bundle.mkdir()
    with open(bundle / 'config.json', 'w') as f:
        json.dump({'ociVersion': '1.0.2'}, f)
    debug_dir = tmp_path / 'debug'
    handler = InterceptorHandler(InterceptorConfig(write_debug_output=True, debug_output_dir=str(debug_dir)))
    handler.intercept_command(['create', '--bundle', str(bundle), 'container1'])
    assert (debug_dir / 'unknown_hostname_original.json').exists()
    assert not (debug_dir / 'unknown_hostname_modified.json').exists()

def test_debug_output_disabled(mock_popen, bundle_dir):
    debug_writer = MagicMock()
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True), debug_writer=debug_writer)
    handler.intercept_command(['create', '--bundle', bundle_dir, 'container1'])
    debug_writer.write_snapshot.assert_not_called()
    debug_writer.record_runtime_call.assert_not_called()

def test_debug_output_failure_is_not_fatal(mock_popen, bundle_dir):
    debug_writer = MagicMock()
    debug_writer.write_snapshot.side_effect = PermissionError("Permission denied")
    debug_writer.record_runtime_call.side_effect = PermissionError("Permission denied")
    handler = InterceptorHandler(InterceptorConfig(readonly_networking_mounts=True, write_debug_output=True),
                                 debug_writer=debug_writer)
    assert handler.intercept_command(['create', '--bundle', bundle_dir, 'container1']) == 0
    assert mount_options(read_config(bundle_dir), '/etc/hosts') == ['rbind', 'rprivate', 'ro']
    assert mock_logger.warning.call_count == 3
    mock_popen.assert_called_once()

def test_debug_output_hostname_cannot_escape_directory(mock_popen, tmp_path):
    bundle = tmp_path / 'bundle'
    bundle.mkdir()
    outside = tmp_path / 'outside'
    outside.mkdir()
    with open(bundle / 'config.json', 'w') as f:
        json.dump({'ociVersion': '1.0.2', 'hostname': str(outside / 'pwn')}, f)
    debug_dir = tmp_path / 'debug'
    handler = InterceptorHandler(InterceptorConfig(write_debug_output=True, debug_output_dir=str(debug_dir)))
    handler.intercept_command(['create', '--bundle', str(bundle), 'container1'])
    assert not (outside / 'pwn_original.json').exists()
    assert (debug_dir / 'pwn_original.json').exists()
