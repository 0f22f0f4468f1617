import sys
import pytest
from PyQt6.QtCore import QCoreApplication

@pytest.fixture(scope="module")
def app():
    return QCoreApplication.instance() or QCoreApplication(sys.argv)


from core.logger import AppLogger


def test_logger_emits_messages(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append((cat, msg)))
    logger.log("SYSEX", "F0 41 10 42 12 40 00 7F 00 41 F7")
    assert len(received) == 1
    assert received[0] == ("SYSEX", "F0 41 10 42 12 40 00 7F 00 41 F7")


def test_logger_categories(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append(cat))
    logger.sysex("Added GS reset")
    logger.smf("Reading Standard MIDI File format 0")
    logger.general("Ready")
    assert received == ["SYSEX", "SMF", "GENERAL"]


def test_logger_prints_category_prefix(app, capsys):
    logger = AppLogger()
    logger.smf("Read 2 event(s)")
    assert "[SMF] Read 2 event(s)" in capsys.readouterr().out


def test_logger_without_echo_still_emits(app, capsys):
    logger = AppLogger(echo=False)
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append(msg))
    logger.sysex("quiet")
    assert received == ["quiet"]
    assert capsys.readouterr().out == ""
