from gridlib.actuators import (
    ENSURE,
    POSITION,
    REMOVE,
    ActuatorCommand,
    FinderActuator,
    MemoryActuator,
    parse_resolutions,
)

PROFILER_OUTPUT = """
Graphics/Displays:
    Apple M1:
      Displays:
        Color LCD:
          Resolution: 2560 x 1600 Retina
        DELL U2720Q:
          Resolution: 3840 x 2160 (2160p/4K UHD 1 - Ultra High Definition)
"""


def test_parse_resolutions():
    assert parse_resolutions(PROFILER_OUTPUT) == [(2560, 1600), (3840, 2160)]
    assert parse_resolutions("no displays") == []


def test_memory_actuator_reports_each_failure():
    actuator = MemoryActuator(failing={'b'})
    errors = actuator.execute_batch([
        ActuatorCommand(ENSURE, 'a', 1, 2),
        ActuatorCommand(ENSURE, 'b'),
        ActuatorCommand(POSITION, 'c', 3, 4),
    ])

    assert errors[0] is None
    assert errors[1].identity == 'b'
    # position of an identity that was never created
    assert errors[2].command == POSITION
    assert actuator.position_of('a') == (1, 2)


def test_finder_script_wraps_every_command():
    actuator = FinderActuator()
    script = actuator.build_batch_script([
        ActuatorCommand(ENSURE, '0', 0, 0),
        ActuatorCommand(POSITION, '1', 10.4, 20.6),
        ActuatorCommand(REMOVE, '2'),
    ])

    assert script.count('\ntry\n') == 3
    assert '{10, 21}' in script
    assert 'delete folder folderPath' in script
    assert 'return failed as text' in script


def test_finder_batch_maps_failed_indices(monkeypatch):
    actuator = FinderActuator()
    monkeypatch.setattr(actuator, '_run_script', lambda script: '1')

    errors = actuator.execute_batch([
        ActuatorCommand(POSITION, '0', 0, 0),
        ActuatorCommand(POSITION, '1', 0, 0),
    ])

    assert errors[0] is None
    assert errors[1].identity == '1'


def test_finder_batch_fails_whole_batch_when_osascript_fails(monkeypatch):
    def broken(script):
        raise RuntimeError('osascript missing')

    actuator = FinderActuator()
    monkeypatch.setattr(actuator, '_run_script', broken)

    errors = actuator.execute_batch([ActuatorCommand(REMOVE, '0'), ActuatorCommand(REMOVE, '1')])
    assert [e.identity for e in errors] == ['0', '1']
