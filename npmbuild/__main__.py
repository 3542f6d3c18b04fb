from npmbuild.main import main

main()
