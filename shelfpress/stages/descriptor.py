"""Distribution descriptor creation via `transmission-create`."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ..errors import StorageError
from ..runtime_tools import ToolRunner

DEFAULT_TRACKERS = (
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.demonii.com:1337/announce",
    "udp://tracker.torrent.eu.org:451/announce",
)


class DescriptorBuilder:
    """Create one peer-discovery descriptor per distributable artifact."""

    stage_name = "descriptor"

    def __init__(
        self,
        runner: ToolRunner,
        executable: str = "transmission-create",
        trackers: Sequence[str] = DEFAULT_TRACKERS,
    ) -> None:
        self._runner = runner
        self._executable = executable
        self._trackers = tuple(trackers)

    @property
    def trackers(self) -> tuple[str, ...]:
        """Return announce endpoints embedded in every descriptor."""

        return self._trackers

    def create(self, source: Path, output: Path, label: str) -> Path:
        """Describe `source` into `output`, replacing a previous descriptor."""

        try:
            output.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(
                stage=self.stage_name,
                detail=f"Failed to replace descriptor `{output.name}`: {exc}",
            ) from exc

        arguments = ["-o", str(output), "-c", label]
        for tracker in self._trackers:
            arguments.extend(["-t", tracker])
        arguments.append(str(source))
        self._runner.run(self._executable, arguments, stage=self.stage_name)
        return output
