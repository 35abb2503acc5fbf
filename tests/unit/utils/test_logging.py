import logging

import pagescout.utils.logging as logging_utils


def test_configure_logfire_without_token(mocker):
    configure = mocker.patch('pagescout.utils.logging.logfire.configure')

    assert logging_utils.configure_logfire(None) is False
    assert configure.call_args.kwargs['send_to_logfire'] is False


def test_configure_logfire_with_token(mocker):
    configure = mocker.patch('pagescout.utils.logging.logfire.configure')

    assert logging_utils.configure_logfire('token') is True
    assert configure.call_args.kwargs['token'] == 'token'


def test_setup_local_logging_writes_to_workdir(mocker, tmp_path):
    mocker.patch('pagescout.utils.logging.get_logs_path', return_value=tmp_path / 'logs')
    root = logging.getLogger()
    handlers_before = list(root.handlers)

    try:
        log_file = logging_utils.setup_local_logging('INFO')

        assert log_file.parent == tmp_path / 'logs'
        assert log_file.name.startswith('run_')
    finally:
        for handler in root.handlers[:]:
            if handler not in handlers_before:
                root.removeHandler(handler)
                handler.close()
