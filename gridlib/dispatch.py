import math
import threading
from typing import NamedTuple, Optional

from gridlib.actuators import ENSURE, POSITION, REMOVE, ActuatorCommand
from gridlib.errors import ActuatorCommandFailure
from gridlib.operations import OpType

DELETE_MODES = ('park', 'remove')


class DispatchOutcome(NamedTuple):
    operation: object
    ok: bool
    error: Optional[Exception] = None


class CoordinateMapper:
    """Maps grid coordinates to positions on the display surface."""

    def __init__(self, rows, cols, width, height):
        self.rows = rows
        self.cols = cols
        self.width = width
        self.height = height

    def to_screen(self, row, col):
        x = (col / self.cols) * self.width
        y = (row / self.rows) * self.height
        return x, y


class DispatchPipeline:
    """Sends grid operations to an actuator in concurrent batches.

    The display state is already updated when dispatch runs. A failed
    command is reported in its outcome and nothing is rolled back or retried.
    """

    def __init__(self, actuator, mapper, parked_position=(0, 0), batch_count=4,
                 delete_mode='park', verbose=False):
        if batch_count < 1:
            raise ValueError("batch_count must be at least 1")
        if delete_mode not in DELETE_MODES:
            raise ValueError(f"delete_mode must be one of {DELETE_MODES}, got {delete_mode!r}")
        self.actuator = actuator
        self.mapper = mapper
        self.parked_position = tuple(parked_position)
        self.batch_count = batch_count
        self.delete_mode = delete_mode
        self.verbose = verbose
        self.stats = {
            'dispatches': 0,
            'batches_sent': 0,
            'operations_sent': 0,
            'operations_failed': 0,
            'commands_sent': 0
        }

    def translate(self, op):
        """Actuator commands for one operation, in execution order."""
        if op.type is OpType.DELETE:
            if self.delete_mode == 'remove':
                return [ActuatorCommand(REMOVE, op.identity)]
            x, y = self.parked_position
            return [ActuatorCommand(POSITION, op.identity, x, y)]

        x, y = self.mapper.to_screen(op.row, op.col)
        if op.type is OpType.ADD and self.delete_mode == 'remove':
            return [ActuatorCommand(ENSURE, op.identity, x, y), ActuatorCommand(POSITION, op.identity, x, y)]
        return [ActuatorCommand(POSITION, op.identity, x, y)]

    def partition(self, items):
        """Split items into at most batch_count equally sized chunks."""
        if not items:
            return []
        size = math.ceil(len(items) / self.batch_count)
        return [items[i:i + size] for i in range(0, len(items), size)]

    def _send_batch(self, ops):
        commands = []
        owners = []
        for op_index, op in enumerate(ops):
            for command in self.translate(op):
                commands.append(command)
                owners.append(op_index)

        errors = self._execute(commands)

        op_errors = [None] * len(ops)
        for owner, error in zip(owners, errors):
            if error is not None and op_errors[owner] is None:
                op_errors[owner] = error

        outcomes = [DispatchOutcome(op, error is None, error) for op, error in zip(ops, op_errors)]
        return outcomes, len(commands)

    def _execute(self, commands):
        try:
            return self.actuator.execute_batch(commands)
        except Exception as e:
            return [ActuatorCommandFailure(c.identity, c.kind, e) for c in commands]

    def _run_concurrently(self, worker, batches):
        """Run worker on every batch in its own thread and join them all."""
        results = [None] * len(batches)

        def run(index, batch):
            results[index] = worker(batch)

        threads = []
        for index, batch in enumerate(batches):
            t = threading.Thread(target=run, args=(index, batch))
            threads.append(t)
            t.start()

        # Wait for all batches, whatever happened to the others
        for t in threads:
            t.join()
        return results

    def dispatch(self, ops):
        """Send operations to the actuator and wait for every batch."""
        ops = list(ops)
        batches = self.partition(ops)
        results = self._run_concurrently(self._send_batch, batches)

        outcomes = [outcome for batch_outcomes, _ in results for outcome in batch_outcomes]
        failures = [o for o in outcomes if not o.ok]
        for failure in failures:
            print(f"Actuator command failed: {failure.error}")

        self.stats['dispatches'] += 1
        self.stats['batches_sent'] += len(batches)
        self.stats['operations_sent'] += len(ops)
        self.stats['operations_failed'] += len(failures)
        self.stats['commands_sent'] += sum(count for _, count in results)

        if self.verbose and ops:
            print(f"Dispatched {len(ops)} operations in {len(batches)} batches, {len(failures)} failed")
        return outcomes

    def materialize(self, identities):
        """Create every identity at the parked position. Returns the failures."""
        x, y = self.parked_position
        commands = [ActuatorCommand(ENSURE, identity, x, y) for identity in identities]
        results = self._run_concurrently(self._execute, self.partition(commands))

        errors = [e for batch_errors in results for e in batch_errors if e is not None]
        for error in errors:
            print(f"Failed to create identity: {error}")
        return errors

    def get_stats(self):
        sent = self.stats['operations_sent']
        failure_rate = (self.stats['operations_failed'] / sent * 100) if sent > 0 else 0
        return {
            'batch_count': self.batch_count,
            'delete_mode': self.delete_mode,
            'dispatches': self.stats['dispatches'],
            'batches_sent': self.stats['batches_sent'],
            'operations_sent': sent,
            'operations_failed': self.stats['operations_failed'],
            'commands_sent': self.stats['commands_sent'],
            'failure_rate': failure_rate
        }

    def reset_stats(self):
        for key in self.stats:
            self.stats[key] = 0
