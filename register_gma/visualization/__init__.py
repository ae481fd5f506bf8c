from .register_plots import PlotStyle, RegisterVisualizer, display_permutation, make_plot_style
