from cputop.monitor import main

main()
