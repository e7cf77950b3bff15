from klipper_timeout.app import main

main()
