import logging

import matplotlib.pyplot as plt

from bingham_lbm import Simulation, extract_velocity_profile, poiseuille_bingham_case, write_profile
from bingham_lbm.cases import bingham_poiseuille_profile, driving_pressure_gradient
from bingham_lbm.logging_config import setup_logging
from bingham_lbm.visualization import plot_velocity_profile

tau_y = 0.00016
mu_p = 0.2
datadir = "data/poise_tauy-000016"

setup_logging(logging.INFO)

config = poiseuille_bingham_case(tau_y=tau_y, mu_p=mu_p)
sim = Simulation(config)
sim.run()
print(f"{sim.state.value}, {sim.unconverged_count} unconverged rheology updates")

profile = extract_velocity_profile(sim.lattice, config.ni - 1, config.dx, config.dt)
write_profile(datadir, profile)

analytic = bingham_poiseuille_profile(config.nj, driving_pressure_gradient(config), mu_p, tau_y)
plot_velocity_profile(profile, analytic)
plt.savefig(f"{datadir}/ubar_profile.png", bbox_inches="tight")
