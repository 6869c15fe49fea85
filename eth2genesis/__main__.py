from eth2genesis.cli import main

if __name__ == "__main__":
    main()
