from bingham_lbm import MRTCollision, ObstacleMask, Simulation
from bingham_lbm.cases import channel_boundaries
from bingham_lbm.config import CaseConfig
from bingham_lbm.visualization import run_animation_loop

n_t = 4000
delta_t = 50

obstacle = ObstacleMask.build_from_file("data/test_text.png")
nj, ni = obstacle.mask.shape
config = CaseConfig(ni=ni, nj=nj, nsteps=n_t, collision=MRTCollision(0.05),
                    boundaries=channel_boundaries(1.01, 0.99), obstacle=obstacle)
sim = Simulation(config)
run_animation_loop(sim, n_t, delta_t)
