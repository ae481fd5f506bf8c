"""
Visualization tools for register subspaces.
"""

from typing import NamedTuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns


class PlotStyle(NamedTuple):
    """
    Rendering configuration for one category grouping.

    Attributes:
        order (list): Category labels in canonical order
        colors (dict): Label -> color
    """

    order: list
    colors: dict


def make_plot_style(labels, palette="tab20"):
    """
    Build a PlotStyle from category labels in canonical order.

    Parameters
    ----------
    labels : list or pandas.Series
        Ordered labels, or an ordered categorical Series
    palette : str, optional
        seaborn palette name

    Returns
    -------
    PlotStyle
    """
    if isinstance(labels, pd.Series) and isinstance(labels.dtype, pd.CategoricalDtype):
        labels = list(labels.cat.categories)
    labels = list(labels)
    colors = sns.color_palette(palette, n_colors=len(labels))
    return PlotStyle(order=labels, colors=dict(zip(labels, colors)))


def display_permutation(n, seed=42):
    """Reproducible random row order, so no category is always drawn on top."""
    return np.random.default_rng(seed).permutation(n)


class RegisterVisualizer:
    def __init__(self, seed=42):
        self.seed = seed
        self.fig = None
        self.ax = None

    def plot_scatter_matrix(self, scores, grouping, style=None, dims=None,
                            title="Scatterplot matrix"):
        """
        Pairwise scatterplots of latent dimensions, colored by category.

        Parameters
        ----------
        scores : pandas.DataFrame
            Projected observations (observations x dims)
        grouping : pandas.Series
            Category per observation, aligned with ``scores``
        style : PlotStyle, optional
            Category order and colors
        dims : list, optional
            Columns of ``scores`` to show; all by default
        title : str, optional
            Figure title
        """
        dims = list(dims) if dims is not None else list(scores.columns)
        style = style or make_plot_style(grouping)

        frame = scores[dims].copy()
        frame["category"] = np.asarray(grouping)
        frame = frame.iloc[display_permutation(len(frame), self.seed)]

        grid = sns.pairplot(
            frame,
            vars=dims,
            hue="category",
            hue_order=style.order,
            palette=style.colors,
            corner=True,
            plot_kws={"s": 8, "alpha": 0.6, "linewidth": 0},
        )
        grid.figure.suptitle(title, y=1.02)
        self.fig = grid.figure
        self.ax = grid.axes
        return grid

    def plot_weights(self, subspace, dims=(0,), top_n=None, title=None):
        """
        Bar charts of basis weights in feature space.

        Parameters
        ----------
        subspace : Subspace
            Basis to show
        dims : sequence of int, optional
            Dimension indices, one panel each
        top_n : int, optional
            Only the features with the largest absolute weight
        title : str, optional
            Figure title
        """
        basis = subspace.project(which="basis")
        dims = list(dims)
        self.fig, axes = plt.subplots(1, len(dims), figsize=(5 * len(dims), 8), squeeze=False)
        self.ax = axes[0]

        for ax, d in zip(self.ax, dims):
            weights = basis.iloc[:, d]
            order = weights.abs().sort_values(ascending=False).index
            if top_n is not None:
                order = order[:top_n]
            weights = weights.loc[order][::-1]
            colors = ["tab:red" if w < 0 else "tab:blue" for w in weights]
            ax.barh(range(len(weights)), weights.values, color=colors)
            ax.set_yticks(range(len(weights)))
            ax.set_yticklabels(weights.index)
            ax.axvline(0, color="black", linewidth=0.8)
            ax.set_xlabel("Weight")
            ax.set_title(basis.columns[d])

        self.fig.suptitle(title or subspace.provenance)
        self.fig.tight_layout()
        return self.fig

    def plot_grouped_boxplot(self, scores, grouping, dim, hue=None, style=None,
                             title=None):
        """
        Distribution of one latent dimension per category.

        Parameters
        ----------
        scores : pandas.DataFrame
            Projected observations
        grouping : pandas.Series
            Category per observation
        dim : str or int
            Column name or position in ``scores``
        hue : pandas.Series, optional
            Second grouping (e.g. variety) split within each category
        style : PlotStyle, optional
            Category order and colors
        title : str, optional
            Plot title
        """
        column = scores.columns[dim] if isinstance(dim, int) else dim
        style = style or make_plot_style(grouping)

        frame = pd.DataFrame({
            "score": scores[column].to_numpy(),
            "category": np.asarray(grouping),
        })
        kwargs = {}
        if hue is not None:
            frame["hue"] = np.asarray(hue)
            kwargs["hue"] = "hue"
        else:
            kwargs["hue"] = "category"
            kwargs["palette"] = style.colors
            kwargs["legend"] = False

        self.fig, self.ax = plt.subplots(figsize=(max(8, 0.5 * len(style.order)), 6))
        sns.boxplot(data=frame, x="category", y="score", order=style.order,
                    ax=self.ax, fliersize=1, **kwargs)
        self.ax.set_xticks(range(len(style.order)))
        self.ax.set_xticklabels(style.order, rotation=45, ha="right")
        self.ax.set_xlabel("")
        self.ax.set_ylabel(column)
        self.ax.set_title(title or column)
        self.fig.tight_layout()
        return self.fig

    def save_plot(self, filepath):
        """
        Save the current plot to a file.

        Parameters
        ----------
        filepath : str
            Path to save the plot
        """
        if self.fig is None:
            raise ValueError("No plot to save")
        self.fig.savefig(filepath, bbox_inches="tight")
        plt.close(self.fig)
        self.fig = None
        self.ax = None
