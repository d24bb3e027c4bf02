import os

from stable_baselines3 import PPO
from stable_baselines3.common.callbacks import CheckpointCallback
from stable_baselines3.common.env_checker import check_env
from stable_baselines3.common.vec_env import DummyVecEnv, SubprocVecEnv

from rotrix.config import GameConfig
from rotrix.env import RotrixEnv

# --- Configuration ---
LOG_DIR = "ppo_rotrix_logs"
MODEL_SAVE_PATH = os.path.join("models", "ppo_rotrix_model")
TOTAL_TIMESTEPS = 1_000_000
N_ENVS = 4  # Parallel environments
LEARNING_RATE = 0.0003
N_STEPS = 2048  # Steps per environment per update
BATCH_SIZE = 64
N_EPOCHS = 10
GAMMA = 0.99
GAE_LAMBDA = 0.95
CLIP_RANGE = 0.2
ENT_COEF = 0.01  # Flips reshuffle the board, so keep some exploration
VF_COEF = 0.5

os.makedirs(LOG_DIR, exist_ok=True)
os.makedirs(os.path.dirname(MODEL_SAVE_PATH), exist_ok=True)


def make_env(rank, seed=0):
    """
    Utility function for multiprocessed env.
    :param rank: (int) index of the subprocess
    :param seed: (int) the initial seed for RNG
    """
    def _init():
        env = RotrixEnv(GameConfig())
        env.reset(seed=seed + rank)
        return env
    return _init


if __name__ == "__main__":
    print("Starting Rotrix PPO training script...")

    print("Checking environment...")
    check_env(RotrixEnv(), warn=True)

    print(f"Creating {N_ENVS} parallel environments...")
    if N_ENVS > 1:
        vec_env = SubprocVecEnv([make_env(i) for i in range(N_ENVS)])
    else:
        vec_env = DummyVecEnv([make_env(0)])

    checkpoint_callback = CheckpointCallback(
        save_freq=max(100_000 // N_ENVS, 1),
        save_path=LOG_DIR,
        name_prefix="rotrix_ppo_model"
    )

    # Dict observations need MultiInputPolicy
    model = PPO(
        "MultiInputPolicy",
        vec_env,
        learning_rate=LEARNING_RATE,
        n_steps=N_STEPS,
        batch_size=BATCH_SIZE,
        n_epochs=N_EPOCHS,
        gamma=GAMMA,
        gae_lambda=GAE_LAMBDA,
        clip_range=CLIP_RANGE,
        ent_coef=ENT_COEF,
        vf_coef=VF_COEF,
        policy_kwargs=dict(net_arch=dict(pi=[128, 128], vf=[128, 128])),
        verbose=1,
        tensorboard_log=LOG_DIR
    )

    print(f"Starting training for {TOTAL_TIMESTEPS} timesteps...")
    try:
        model.learn(total_timesteps=TOTAL_TIMESTEPS, callback=[checkpoint_callback])
        model.save(MODEL_SAVE_PATH)
        print(f"Final model saved to {MODEL_SAVE_PATH}.zip")
    finally:
        vec_env.close()
        print("Environments closed.")
