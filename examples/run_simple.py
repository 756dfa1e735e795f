# examples/run_simple.py

import logging
import os
import matplotlib.pyplot as plt

from tokenswap_abm.models.swap_model import TokenSwapModel
from tokenswap_abm.utils.analysis import quote_table
from tokenswap_abm.utils.config_parser import load_config


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # 1. Locate and load the YAML configuration
    script_dir = os.path.dirname(os.path.abspath(__file__))
    config = load_config(os.path.join(script_dir, "config_simple.yaml"))

    # 2. Instantiate the model and quote a range of trade sizes up front
    model = TokenSwapModel(config)
    print("\n=== Initial quotes, token A -> token B ===")
    print(quote_table(model.pool, model.token_a).to_string(index=False))

    # 3. Run the simulation for the configured number of steps
    df = model.run()

    # 4. Print the last few rows of the collected pool metrics
    print("\n=== Final pool metrics (last 5 steps) ===")
    print(df.tail())
    print(f"\nSwaps: {len(model.metrics['swaps'])}, "
          f"deposits: {len(model.metrics['deposits'])}, "
          f"withdrawals: {len(model.metrics['withdrawals'])}")
    print("\n" + str(model.pool))

    # 5. Plot rate and invariant growth from retained fees
    fig, ax1 = plt.subplots(figsize=(8, 4))
    ax1.plot(df.index, df["Rate"], label="Rate (B per A)", color="tab:blue")
    ax1.set_xlabel("Time Step")
    ax1.set_ylabel("Rate", color="tab:blue")
    ax1.tick_params(axis="y", labelcolor="tab:blue")

    ax2 = ax1.twinx()
    ax2.plot(df.index, df["Invariant"], label="Invariant", color="tab:orange", linestyle="--")
    ax2.set_ylabel("Reserve A * Reserve B", color="tab:orange")
    ax2.tick_params(axis="y", labelcolor="tab:orange")

    fig.suptitle("Pool Rate and Invariant Over Time")
    fig.tight_layout()
    fig.legend(loc="upper left")
    plt.show()


if __name__ == "__main__":
    main()
