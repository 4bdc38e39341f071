"""Training curves rendered with matplotlib's headless backend."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional, Tuple


class PlotAdapter:
    """Training callback that draws ``loss.png`` when closed.

    The loss goes on the left axis; when the metrics carry
    ``grad_abs_sum`` it is drawn on a log-scaled right axis, since that is
    the quantity threshold-based training stops on.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, Optional[float]]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    @property
    def history(self) -> List[Tuple[int, float]]:
        return [(epoch, loss) for epoch, loss, _ in self._history]

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if self.enable_plots:
            grad = metrics.get("grad_abs_sum")
            self._history.append(
                (int(epoch), float(metrics.get("loss", float("nan"))), None if grad is None else float(grad))
            )

    __call__ = on_epoch

    def close(self) -> str | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        epochs = [epoch for epoch, _, _ in self._history]
        fig, loss_ax = plt.subplots()
        loss_ax.plot(epochs, [loss for _, loss, _ in self._history], color="tab:blue")
        loss_ax.set_xlabel("Epoch")
        loss_ax.set_ylabel("Mean loss", color="tab:blue")

        grads = [grad for _, _, grad in self._history]
        if all(g is not None and g > 0 for g in grads):
            grad_ax = loss_ax.twinx()
            grad_ax.plot(epochs, grads, color="tab:orange", linestyle="--")
            grad_ax.set_yscale("log")
            grad_ax.set_ylabel("|gradient| sum", color="tab:orange")

        loss_ax.set_title("Training curve")
        fig.tight_layout()
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return str(plot_path)
