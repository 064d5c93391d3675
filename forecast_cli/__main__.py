from forecast_cli.forecast_cmd import main

main()
