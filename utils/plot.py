import matplotlib.pyplot as plt


def plot_convergence(histories: dict, title: str = "Local search on the TSP", path: str = None):
    """Plot one cost trajectory per solver; save to `path` if given, else show."""
    fig, ax = plt.subplots()
    for name, hist in histories.items():
        ax.plot(hist, label=name)
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Current tour length")
    ax.legend()
    ax.set_title(title)
    if path:
        fig.savefig(path)
        plt.close(fig)
    else:
        plt.show()
    return fig
