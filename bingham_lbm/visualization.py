import matplotlib
import numpy as np
import matplotlib.pyplot as plt


def plot_velocity_profile(profile, analytic=None, ax=None, label="LBM"):
    if ax is None:
        _, ax = plt.subplots(1, 1, figsize=(5, 5))
    ax.plot(profile[:, 1], profile[:, 0], "o", label=label)
    if analytic is not None:
        ax.plot(analytic, profile[:, 0], "k-", label="analytic")
    ax.set_xlabel("$u_x$")
    ax.set_ylabel("$y$")
    ax.legend()
    return ax


def run_animation_loop(sim, n_t, delta_t):
    nj, ni = sim.lattice.shape
    rho0 = sim.config.rhoo

    fig, axes = plt.subplots(2, 2, figsize=(15, 5))
    cmap = matplotlib.colormaps["bwr"].copy()
    cmap.set_bad(color='gray')
    handle_rho = axes[0][0].imshow(np.zeros([nj, ni]), cmap=cmap, origin="lower", clim=np.array([-1, 1]) * 0.2 * rho0)
    handle_vort = axes[0][1].imshow(np.zeros([nj, ni]), cmap=cmap, origin="lower", clim=np.array([-1, 1]) * 0.002)
    handle_ux = axes[1][0].imshow(np.zeros([nj, ni]), cmap=cmap, origin="lower", clim=np.array([-1, 1]) * 0.05)
    handle_nu = axes[1][1].imshow(np.zeros([nj, ni]), cmap="viridis", origin="lower")
    axes_flat = list(axes[0]) + list(axes[1])
    for ax, title in zip(axes_flat, ["$\\rho - \\rho_0$", "$\\nabla \\times u$", "$u_x$", "$\\log_{10} \\nu$"]):
        ax.set_title(title)
        ax.axis("equal")
    fig.tight_layout()

    for t in range(n_t // delta_t):
        sim.run(delta_t)
        print(sim.step)
        log_nu = np.log10(sim.nu)
        handle_rho.set_data(sim.rho - rho0)
        handle_vort.set_data(sim.vorticity)
        handle_ux.set_data(sim.u[..., 0])
        handle_nu.set_data(log_nu)
        handle_nu.set_clim(np.nanmin(log_nu), np.nanmax(log_nu) + 1e-12)
        plt.pause(0.001)
    return fig
